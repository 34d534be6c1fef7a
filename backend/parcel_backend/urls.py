from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check), # Health check endpoint

    # Authentication endpoints (at /api/auth/)
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    # Package endpoints (create, lifecycle actions, tracking)
    path('api/packages/', include('parcels.urls')),

    # Trip endpoints (create, update, cancel, matches)
    path('api/trips/', include('trips.urls')),

    # Wallet endpoints (top-up, escrow hold/release/refund, ledger)
    path('api/wallet/', include('wallet.urls')),

    path('api/notifications/', include('notifications.urls')),
]
