from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("email", "name", "membership_type", "subgroup", "is_active", "date_joined")
    list_filter = ("membership_type", "subgroup", "is_active")
    search_fields = ("email", "name")
    exclude = ("password", "password_hash", "last_login")
    readonly_fields = ("token_version", "date_joined", "updated_at")
