from django.contrib import admin

from .models import Event


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ("title", "starts_at", "is_public", "subgroup", "author")
    list_filter = ("is_public", "subgroup")
    search_fields = ("title", "description")
    raw_id_fields = ("author", "birthday_of")
