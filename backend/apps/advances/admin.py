from django.contrib import admin

from .models import AdvanceMonthlyPayment, AdvancePayment


class AdvanceMonthlyPaymentInline(admin.TabularInline):
    model = AdvanceMonthlyPayment
    extra = 0
    readonly_fields = ["month", "year", "amount", "status", "applied_at", "applied_to_invoice"]
    can_delete = False


@admin.register(AdvancePayment)
class AdvancePaymentAdmin(admin.ModelAdmin):
    list_display = ["customer", "total_amount", "months_count", "method", "status", "payment_date"]
    list_filter = ["status", "method"]
    search_fields = ["customer__name", "customer__code", "reference"]
    raw_id_fields = ["customer", "account"]
    inlines = [AdvanceMonthlyPaymentInline]
