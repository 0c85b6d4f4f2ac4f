from django.urls import path

from bulletin.accounts import views

urlpatterns = (
    path("login/", views.login, name="accounts.login"),
    path("admin/dashboard/", views.dashboard, name="accounts.dashboard"),
    path("admin/password/", views.change_password, name="accounts.change_password"),
    path("admin/logout/", views.logout, name="accounts.logout"),
)
