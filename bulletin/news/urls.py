from django.urls import path
from django.views.decorators.csrf import csrf_exempt

from bulletin.news import views

urlpatterns = (
    path("admin/newsletters/", views.newsletters, name="news.newsletters"),
    path("subscriptions/", csrf_exempt(views.subscribe), name="news.subscribe"),
    path("subscriptions/confirm/", views.confirm, name="news.confirm"),
)
