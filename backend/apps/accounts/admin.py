from django import forms
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.utils.html import format_html
from django.utils.timezone import localtime
from import_export import resources
from import_export.admin import ImportExportMixin

from .models import User


class CustomUserCreationForm(forms.ModelForm):
    class Meta:
        model = User
        fields = ('email', 'name')

    def save(self, commit=True):
        user = super().save(commit=False)
        user.set_unusable_password()
        if commit:
            user.save()
        return user


class UserResource(resources.ModelResource):
    class Meta:
        model = User
        import_id_fields = ('email',)
        fields = ('id', 'email', 'name', 'is_active', 'is_staff', 'is_superuser', 'created_at')


@admin.register(User)
class CustomUserAdmin(ImportExportMixin, UserAdmin):
    resource_class = UserResource
    add_form = CustomUserCreationForm

    list_display = (
        'email',
        'name',
        'location_count',
        'outage_count',
        'is_active_badge',
        'created_at_date'
    )
    list_filter = (
        'is_active',
        'is_staff',
        'is_superuser',
        'created_at'
    )
    search_fields = ('email', 'name')
    ordering = ('-created_at',)
    list_per_page = 25
    actions = ['activate_users', 'deactivate_users']

    fieldsets = (
        ('Authentication Info', {
            'fields': ('email', 'password')
        }),
        ('Personal Info', {
            'fields': ('name',)
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')
        }),
        ('Important Dates', {
            'fields': ('last_login', 'created_at'),
            'classes': ('collapse',)
        }),
    )

    add_fieldsets = (
        ('Authentication Info', {
            'classes': ('wide',),
            'fields': ('email',)
        }),
        ('Personal Info', {
            'classes': ('wide',),
            'fields': ('name',)
        }),
    )

    readonly_fields = ('created_at', 'last_login')

    def location_count(self, obj):
        return obj.locations.count()
    location_count.short_description = "Locations"

    def outage_count(self, obj):
        return obj.outages.count()
    outage_count.short_description = "Outages"

    def is_active_badge(self, obj):
        if obj.is_active:
            return format_html('<span style="color: green; font-weight: bold;">{}</span>', '✓ Active')
        return format_html('<span style="color: red; font-weight: bold;">{}</span>', '✗ Inactive')
    is_active_badge.short_description = "Status"

    def created_at_date(self, obj):
        if obj.created_at:
            return localtime(obj.created_at).strftime('%d/%m/%Y %H:%M')
        return "N/A"
    created_at_date.short_description = "Joined"
    created_at_date.admin_order_field = 'created_at'

    @admin.action(description='Activate selected users')
    def activate_users(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"{updated} users activated.")

    @admin.action(description='Deactivate selected users')
    def deactivate_users(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} users deactivated.")
