from django.contrib import admin

from .models import CustomerPlan, Plan


@admin.register(Plan)
class PlanAdmin(admin.ModelAdmin):
    list_display = ["name", "monthly_price", "network_profile_name", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["name", "network_profile_name"]


@admin.register(CustomerPlan)
class CustomerPlanAdmin(admin.ModelAdmin):
    list_display = ["customer", "plan", "status", "start_date", "end_date"]
    list_filter = ["status", "plan"]
    search_fields = ["customer__name", "customer__code"]
    raw_id_fields = ["customer"]
