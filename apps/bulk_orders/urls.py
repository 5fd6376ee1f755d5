from django.urls import path
from .views import (
    AdminAnalyticsView,
    AdminBulkOrderListView,
    AdminDeleteView,
    AdminReopenView,
    AdminUpdateStatusView,
    BulkOrderCreateView,
    BulkOrderDetailView,
    MyBulkOrdersView,
)

urlpatterns = [
    # Buyer
    path('create/', BulkOrderCreateView.as_view(), name='bulk-order-create'),
    path('my-orders/', MyBulkOrdersView.as_view(), name='bulk-order-mine'),
    path('details/<uuid:order_id>/', BulkOrderDetailView.as_view(), name='bulk-order-detail'),

    # Admin
    path('admin/all/', AdminBulkOrderListView.as_view(), name='bulk-order-admin-list'),
    path('admin/update-status/<uuid:order_id>/', AdminUpdateStatusView.as_view(), name='bulk-order-update-status'),
    path('admin/reopen/<uuid:order_id>/', AdminReopenView.as_view(), name='bulk-order-reopen'),
    path('admin/delete/<uuid:order_id>/', AdminDeleteView.as_view(), name='bulk-order-delete'),
    path('admin/analytics/', AdminAnalyticsView.as_view(), name='bulk-order-analytics'),
]
