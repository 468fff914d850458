from django.contrib import admin

from .models import SubGroup


@admin.register(SubGroup)
class SubGroupAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "created_at")
    search_fields = ("name",)
