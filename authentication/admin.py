from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from authentication.models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ("email", "username", "role", "province", "is_active", "date_joined")
    list_filter = ("role", "province", "is_active", "is_staff")
    search_fields = ("email", "username", "first_name", "last_name")
    ordering = ("-date_joined",)
    fieldsets = UserAdmin.fieldsets + (
        ("Marketplace", {"fields": ("role", "phone_number", "province", "university")}),
    )
