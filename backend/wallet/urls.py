from django.urls import path
from . import views

app_name = 'wallet'

urlpatterns = [
    path('topup/', views.topup, name='topup'),
    path('hold/', views.hold, name='hold'),
    path('release/', views.release, name='release'),
    path('refund/', views.refund, name='refund'),
    path('balance/', views.balance, name='balance'),
    path('transactions/', views.transactions, name='transactions'),
]
