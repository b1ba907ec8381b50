from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "name", "email", "phone_number",
                    "role", "is_verified", "is_active")
    search_fields = ("username", "name", "email", "phone_number")
    list_filter = ("role", "is_verified", "is_active")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Civic Profile", {"fields": ("name", "phone_number", "role", "is_verified")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Civic Profile", {"fields": ("email", "name", "phone_number", "role")}),
    )
