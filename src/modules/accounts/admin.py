from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from modules.accounts.models import User


@admin.register(User)
class DirectoryUserAdmin(UserAdmin):
    list_display = ["username", "name", "email", "role", "is_active"]
    list_filter = ["role", "is_active"]
    fieldsets = UserAdmin.fieldsets + (("Directory", {"fields": ("name", "role")}),)
    add_fieldsets = UserAdmin.add_fieldsets + (
        ("Directory", {"fields": ("name", "role")}),
    )
