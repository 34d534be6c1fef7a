from django.urls import path
from . import views

app_name = 'trips'

urlpatterns = [
    path('', views.trip_list, name='trip-list'),
    path('history/mine/', views.trip_history, name='trip-history'),
    path('<int:trip_id>/', views.trip_detail, name='trip-detail'),
    path('<int:trip_id>/matches/', views.trip_matches, name='trip-matches'),
]
