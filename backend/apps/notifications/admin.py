from django.contrib import admin

from .models import NotificationLog


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    list_display = ["customer", "message_type", "phone", "status", "created_at"]
    list_filter = ["status", "message_type", "channel"]
    search_fields = ["customer__name", "phone", "content"]
    readonly_fields = ["created_at"]
