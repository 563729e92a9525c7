from django.contrib import admin

from .models import NetworkBinding


@admin.register(NetworkBinding)
class NetworkBindingAdmin(admin.ModelAdmin):
    list_display = ["username", "customer", "profile", "device_name", "is_active"]
    list_filter = ["is_active", "profile", "device_name"]
    search_fields = ["username", "customer__name", "customer__code"]
    raw_id_fields = ["customer"]
