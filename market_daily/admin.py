from django.contrib import admin

from .models import EmailLog, Holding, Industry, NewsArticle, Portfolio, Subscription


class HoldingInline(admin.TabularInline):
    model = Holding
    extra = 1


@admin.register(Portfolio)
class PortfolioAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'is_public', 'created']
    list_filter = ['is_public']
    search_fields = ['name']
    inlines = [HoldingInline]
    actions = ['send_reports']

    @admin.action(description="Send today's report to subscribers")
    def send_reports(self, request, queryset):
        from market_daily.services.distribution import ReportDistributor

        results = ReportDistributor().send_portfolio_reports(queryset.values_list('id', flat=True))
        completed = [r for r in results if r['status'] == 'completed']
        self.message_user(
            request, f"{len(completed)} of {len(results)} portfolio reports sent"
        )


@admin.register(Industry)
class IndustryAdmin(admin.ModelAdmin):
    list_display = ['name', 'keywords']
    search_fields = ['name']


@admin.register(NewsArticle)
class NewsArticleAdmin(admin.ModelAdmin):
    list_display = ['title', 'source', 'category', 'sentiment', 'created']
    list_filter = ['category', 'source']
    search_fields = ['title', 'url']
    readonly_fields = [f.name for f in NewsArticle._meta.fields]


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ['email', 'portfolio', 'is_active', 'created']
    list_filter = ['is_active']
    search_fields = ['email']


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ['recipient', 'subject', 'status', 'sent_at']
    list_filter = ['status', 'sent_at']
    search_fields = ['recipient', 'subject']
    readonly_fields = ['recipient', 'subject', 'status', 'error_message', 'sent_at']

    def has_change_permission(self, request, obj=None):
        return False
