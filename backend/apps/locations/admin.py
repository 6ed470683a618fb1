from django.contrib import admin
from django.contrib.auth import get_user_model
from django.db.models import Count
from django.utils.html import format_html
from django.utils.timezone import localtime
from import_export import resources, fields
from import_export.widgets import ForeignKeyWidget
from import_export.admin import ImportExportModelAdmin

from .models import Location
from .services import LocationService

User = get_user_model()


class LocationResource(resources.ModelResource):
    # Linking user by email
    user = fields.Field(
        column_name='user_email',
        attribute='user',
        widget=ForeignKeyWidget(User, 'email')
    )

    class Meta:
        model = Location
        fields = (
            'id',
            'user',
            'name',
            'address',
            'locality',
            'city',
            'country',
            'latitude',
            'longitude',
            'created_at'
        )
        export_order = fields


@admin.register(Location)
class LocationAdmin(ImportExportModelAdmin):
    resource_class = LocationResource

    list_display = (
        'id',
        'name',
        'user_email',
        'coordinates',
        'address_preview',
        'outage_badge',
        'created_at_date'
    )
    list_filter = (
        'country',
        'city',
        'created_at'
    )
    search_fields = (
        'user__email',
        'name',
        'address',
        'locality',
        'city'
    )
    list_select_related = ('user',)
    raw_id_fields = ('user',)
    list_per_page = 25

    fieldsets = (
        ('Location Information', {
            'fields': ('user', 'name', 'address', 'locality', 'city', 'country')
        }),
        ('Geographic Coordinates', {
            'fields': ('latitude', 'longitude')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ('created_at', 'updated_at')

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(outage_total=Count('outages'))

    def user_email(self, obj):
        return obj.user.email
    user_email.short_description = "User"
    user_email.admin_order_field = 'user__email'

    def coordinates(self, obj):
        return f"{obj.latitude}, {obj.longitude}"
    coordinates.short_description = "Coordinates"

    def address_preview(self, obj):
        address = LocationService.full_address(obj)
        return address[:50] + "..." if len(address) > 50 else address
    address_preview.short_description = "Address"

    def outage_badge(self, obj):
        if obj.outage_total:
            return format_html('<span style="color: #d9534f; font-weight: bold;">{} outages</span>', obj.outage_total)
        return format_html('<span style="color: gray;">{}</span>', '-')
    outage_badge.short_description = "Outages"
    outage_badge.admin_order_field = 'outage_total'

    def created_at_date(self, obj):
        if obj.created_at:
            return localtime(obj.created_at).strftime('%d/%m/%Y %H:%M')
        return "N/A"
    created_at_date.short_description = "Created"
    created_at_date.admin_order_field = 'created_at'

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.outages.exists():
            return False
        return super().has_delete_permission(request, obj)
