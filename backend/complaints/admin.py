from django.contrib import admin

from .models import Complaint, ComplaintStatusLog


class ComplaintStatusLogInline(admin.TabularInline):
    model = ComplaintStatusLog
    extra = 0
    readonly_fields = ("from_status", "to_status", "changed_by", "remarks", "created_at")
    can_delete = False


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "category", "status", "user", "is_anonymous", "created_at")
    list_filter = ("status", "category", "is_anonymous")
    search_fields = ("title", "description")
    # status and remarks change only through ComplaintLifecycleService
    readonly_fields = ("status", "remarks", "created_at", "updated_at")
    inlines = [ComplaintStatusLogInline]
