from django.contrib import admin

from .models import BillingAccount, DocumentSequence, Invoice, InvoiceItem, LedgerEntry, Payment


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ["position", "description", "quantity", "unit_price", "line_total", "plan"]
    can_delete = False


@admin.register(BillingAccount)
class BillingAccountAdmin(admin.ModelAdmin):
    list_display = ["customer", "balance", "credit_limit", "status", "auto_suspend", "payment_commitment_date"]
    list_filter = ["status", "auto_suspend"]
    search_fields = ["customer__name", "customer__code"]
    # Balance only moves through the ledger
    readonly_fields = ["balance", "suspended_at", "last_payment_date"]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ["invoice_number", "customer", "kind", "period_start", "total", "balance_due", "status"]
    list_filter = ["status", "kind"]
    search_fields = ["invoice_number", "customer__name", "customer__code"]
    date_hierarchy = "issue_date"
    readonly_fields = ["subtotal", "tax", "discount", "total", "balance_due"]
    inlines = [InvoiceItemInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ["payment_number", "customer", "amount", "discount", "method", "status", "payment_date"]
    list_filter = ["status", "method"]
    search_fields = ["payment_number", "reference", "customer__name"]
    readonly_fields = ["amount", "discount", "invoice", "account", "status"]


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = ["account", "entry_type", "amount", "balance_delta", "balance_after", "reference_type", "transaction_date"]
    list_filter = ["entry_type", "reference_type"]
    search_fields = ["account__customer__name", "description"]

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


admin.site.register(DocumentSequence)
