from django.contrib import admin

from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "phone", "status", "created_at"]
    list_filter = ["status"]
    search_fields = ["code", "name", "document_number", "phone"]
