from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "recipient", "complaint", "title", "is_read", "created_at")
    list_filter = ("is_read",)
    search_fields = ("title", "message", "complaint_title")
    readonly_fields = ("recipient", "complaint", "complaint_title", "title", "message", "created_at")
