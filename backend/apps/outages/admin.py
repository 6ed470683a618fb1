from django import forms
from django.contrib import admin
from django.contrib.auth import get_user_model
from django.utils.html import format_html
from django.utils.timezone import localtime
from import_export import resources, fields
from import_export.widgets import ForeignKeyWidget
from import_export.admin import ImportExportModelAdmin

from apps.locations.models import Location
from apps.utils.exceptions import InvalidEndTime
from .derived import derive_day_of_week, duration_minutes, outage_status, ONGOING
from .models import Outage

User = get_user_model()


class OutageResource(resources.ModelResource):
    user = fields.Field(
        column_name='user_email',
        attribute='user',
        widget=ForeignKeyWidget(User, 'email')
    )
    location = fields.Field(
        column_name='location_id',
        attribute='location',
        widget=ForeignKeyWidget(Location, 'pk')
    )
    duration = fields.Field(column_name='duration_minutes', readonly=True)
    status = fields.Field(column_name='status', readonly=True)

    class Meta:
        model = Outage
        fields = (
            'id',
            'user',
            'location',
            'start_time',
            'end_time',
            'duration',
            'status',
            'weather_condition',
            'temperature',
            'wind_speed',
            'precipitation',
            'humidity',
            'pressure',
            'cloud',
            'day_of_week',
            'is_holiday',
        )
        export_order = fields

    def dehydrate_duration(self, obj):
        return duration_minutes(obj)

    def dehydrate_status(self, obj):
        return outage_status(obj)

    def before_save_instance(self, instance, row, **kwargs):
        instance.day_of_week = derive_day_of_week(instance.start_time)


class OutageAdminForm(forms.ModelForm):
    """
    Only end_time and is_holiday are editable here; weather stays tied to the
    location and start time it was fetched for.
    """

    class Meta:
        model = Outage
        fields = "__all__"

    def clean(self):
        cleaned_data = super().clean()
        if "end_time" not in self.fields:
            return cleaned_data

        start_time = cleaned_data.get("start_time", self.instance.start_time)
        end_time = cleaned_data.get("end_time")
        if end_time is None and self.instance.end_time is not None:
            self.add_error("end_time", "The end time of an outage cannot be cleared.")
        elif end_time is not None and start_time is not None and end_time < start_time:
            self.add_error("end_time", InvalidEndTime().message)
        return cleaned_data


class StatusListFilter(admin.SimpleListFilter):
    title = "status"
    parameter_name = "status"

    def lookups(self, request, model_admin):
        return (("ongoing", "Ongoing"), ("completed", "Completed"))

    def queryset(self, request, queryset):
        if self.value() == "ongoing":
            return queryset.ongoing()
        if self.value() == "completed":
            return queryset.completed()
        return queryset


@admin.register(Outage)
class OutageAdmin(ImportExportModelAdmin):
    resource_class = OutageResource
    form = OutageAdminForm

    list_display = (
        'id',
        'user_email',
        'location',
        'start_time_display',
        'duration_display',
        'status_badge',
        'weather_condition',
        'temperature',
        'is_holiday'
    )
    list_filter = (
        StatusListFilter,
        'is_holiday',
        'day_of_week',
        'weather_condition',
        'start_time'
    )
    search_fields = (
        'user__email',
        'location__name',
        'location__city',
        'weather_condition'
    )
    list_select_related = ('user', 'location')
    date_hierarchy = 'start_time'
    list_per_page = 25

    fieldsets = (
        ('Outage', {
            'fields': ('user', 'location', 'start_time', 'end_time', 'is_holiday', 'day_of_week')
        }),
        ('Weather Snapshot', {
            'fields': ('weather_condition', 'temperature', 'wind_speed', 'precipitation', 'humidity', 'pressure', 'cloud')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = (
        'user', 'location', 'start_time', 'day_of_week',
        'weather_condition', 'temperature', 'wind_speed', 'precipitation',
        'humidity', 'pressure', 'cloud',
        'created_at', 'updated_at'
    )

    def has_add_permission(self, request):
        # API-only: creation needs a weather fetch
        return False

    def save_model(self, request, obj, form, change):
        obj.day_of_week = derive_day_of_week(obj.start_time)
        super().save_model(request, obj, form, change)

    def user_email(self, obj):
        return obj.user.email
    user_email.short_description = "User"
    user_email.admin_order_field = 'user__email'

    def start_time_display(self, obj):
        return localtime(obj.start_time).strftime('%d/%m/%Y %H:%M')
    start_time_display.short_description = "Started"
    start_time_display.admin_order_field = 'start_time'

    def duration_display(self, obj):
        minutes = duration_minutes(obj)
        hours, mins = divmod(minutes, 60)
        return f"{hours}h {mins:02d}m"
    duration_display.short_description = "Duration"

    def status_badge(self, obj):
        if outage_status(obj) == ONGOING:
            return format_html('<span style="color: #d9534f; font-weight: bold;">{}</span>', '● Ongoing')
        return format_html('<span style="color: green;">{}</span>', '✓ Completed')
    status_badge.short_description = "Status"
