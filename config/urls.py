"""
URL configuration for config project.

Public pages render tenant content fetched from the backend. Everything
under ``dashboard/`` belongs to the tenant operator.
"""
from django.urls import path
from eventsite import admin_views, views

urlpatterns = [
    path('', views.home, name='home'),
    path('events/', views.events_view, name='events'),
    path('tickets/', views.tickets_view, name='tickets'),
    path('login/', views.login_view, name='login'),
    path('login/<str:page_id>/', views.login_view, name='login_page'),
    path('registration/', views.registration_view, name='registration'),
    path('contact/', views.contact_view, name='contact'),
    path('contact/<str:page_id>/', views.contact_view, name='contact_page'),
    path('custom/<str:page_id>/', views.custom_page_view, name='custom_page'),
    path('p/<slug:slug>/', views.customer_page_view, name='customer_page'),

    path('admin-login/', admin_views.admin_login, name='admin_login'),
    path('admin-logout/', admin_views.admin_logout, name='admin_logout'),
    path('dashboard/', admin_views.admin_dashboard, name='admin_dashboard'),
    path('dashboard/pages/', admin_views.admin_pages, name='admin_pages'),
    path('dashboard/pages/new/', admin_views.admin_page_create, name='admin_page_create'),
    path('dashboard/pages/<str:page_id>/delete/', admin_views.admin_page_delete, name='admin_page_delete'),
    path('dashboard/builder/login/', admin_views.admin_login_builder, name='admin_login_builder'),
    path('dashboard/builder/login/<str:page_id>/', admin_views.admin_login_builder, name='admin_login_builder_edit'),
    path('dashboard/builder/contact/', admin_views.admin_contact_builder, name='admin_contact_builder'),
    path('dashboard/builder/contact/<str:page_id>/', admin_views.admin_contact_builder, name='admin_contact_builder_edit'),
    path('dashboard/builder/registration/', admin_views.admin_registration_builder, name='admin_registration_builder'),
    path('dashboard/builder/registration/<str:page_id>/', admin_views.admin_registration_builder, name='admin_registration_builder_edit'),
    path('dashboard/builder/custom/', admin_views.admin_custom_builder, name='admin_custom_builder'),
    path('dashboard/builder/custom/<str:page_id>/', admin_views.admin_custom_builder, name='admin_custom_builder_edit'),
    path('dashboard/events/', admin_views.admin_events, name='admin_events'),
    path('dashboard/events/create/', admin_views.admin_event_create, name='admin_event_create'),
    path('dashboard/events/<str:event_id>/edit/', admin_views.admin_event_edit, name='admin_event_edit'),
    path('dashboard/events/<str:event_id>/delete/', admin_views.admin_event_delete, name='admin_event_delete'),
    path('dashboard/tickets/', admin_views.admin_tickets, name='admin_tickets'),
    path('dashboard/tickets/create/', admin_views.admin_ticket_create, name='admin_ticket_create'),
    path('dashboard/tickets/<str:ticket_id>/edit/', admin_views.admin_ticket_edit, name='admin_ticket_edit'),
    path('dashboard/tickets/<str:ticket_id>/delete/', admin_views.admin_ticket_delete, name='admin_ticket_delete'),
    path('dashboard/preview/login/<str:page_id>/', admin_views.admin_preview_login, name='admin_preview_login'),
    path('dashboard/preview/registration/<str:page_id>/', admin_views.admin_preview_registration, name='admin_preview_registration'),
    path('dashboard/preview/custom/<str:page_id>/', admin_views.admin_preview_custom, name='admin_preview_custom'),
]
