from django.contrib import admin

from .models import Comment, Post


class CommentInline(admin.TabularInline):
    model = Comment
    extra = 0
    raw_id_fields = ("author",)


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ("id", "author", "is_global", "subgroup", "created_at")
    list_filter = ("is_global", "subgroup")
    search_fields = ("text",)
    raw_id_fields = ("author",)
    inlines = [CommentInline]
