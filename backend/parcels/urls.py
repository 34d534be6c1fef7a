from django.urls import path
from . import views

app_name = 'parcels'

urlpatterns = [
    # Sender APIs
    path('', views.package_list, name='package-list'),
    path('history/mine/', views.package_history, name='package-history'),
    path('available/', views.available_packages, name='available-packages'),
    path('code/<str:code>/', views.package_by_code, name='package-by-code'),
    path('<int:package_id>/', views.package_detail, name='package-detail'),
    path('<int:package_id>/matches/', views.package_matches, name='package-matches'),
    path('<int:package_id>/verify-delivery/', views.verify_delivery, name='verify-delivery'),
    path('<int:package_id>/dispute/', views.dispute_package, name='dispute-package'),

    # Traveller Package Actions
    path('<int:package_id>/accept/', views.accept, name='accept-package'),
    path('<int:package_id>/pickup/', views.pickup, name='pickup-package'),
    path('<int:package_id>/in-transit/', views.in_transit, name='in-transit-package'),
    path('<int:package_id>/deliver/', views.deliver, name='deliver-package'),

    # Tracking
    path('<int:package_id>/location/', views.update_location, name='update-location'),
    path('<int:package_id>/tracking/', views.tracking_history, name='tracking-history'),
]
