from django.conf import settings
from django.contrib import messages
from django.shortcuts import render
from django.urls import reverse
from django.views.decorators.http import require_http_methods, require_POST

from pydantic import SecretStr

from bulletin import metrics
from bulletin.accounts import authentication
from bulletin.accounts.authentication import Credential
from bulletin.accounts.decorators import login_required
from bulletin.accounts.forms import ChangePasswordForm, LoginForm
from bulletin.accounts.session import TypedSession
from bulletin.base.exceptions import InvalidCredentials
from bulletin.base.utils import see_other

MSG_AUTH_FAILED = "Authentication failed."
MSG_PASSWORDS_DIFFER = "You entered two different new passwords - the field values must match."
MSG_INVALID_PASSWORD = "You entered an invalid password."
MSG_PASSWORD_CHANGED = "Your password has been changed."
MSG_LOGGED_OUT = "You have successfully logged out."


@require_http_methods(["GET", "POST"])
async def login(request):
    if request.method == "GET":
        return render(request, "accounts/login.html", {"form": LoginForm()})

    form = LoginForm(request.POST)
    if not form.is_valid():
        metrics.incr("accounts.login.failure", tags=["reason:invalid_form"])
        messages.error(request, MSG_AUTH_FAILED)
        return see_other(reverse("accounts.login"))

    credential = Credential(username=form.cleaned_data["username"], password=form.cleaned_data["password"])
    try:
        user_id = await authentication.validator.validate(credential)
    except InvalidCredentials:
        metrics.incr("accounts.login.failure", tags=["reason:invalid_credentials"])
        messages.error(request, MSG_AUTH_FAILED)
        return see_other(reverse("accounts.login"))

    session = TypedSession(request.session)
    await session.renew()
    await session.insert_user(user_id)
    metrics.incr("accounts.login.success")
    return see_other(settings.LOGIN_REDIRECT_URL)


@require_http_methods(["GET"])
@login_required
async def dashboard(request):
    username = await authentication.validator.get_username(request.user_id)
    return render(request, "accounts/dashboard.html", {"username": username})


@require_http_methods(["GET", "POST"])
@login_required
async def change_password(request):
    if request.method == "GET":
        return render(request, "accounts/change_password.html", {"form": ChangePasswordForm()})

    redirect_url = reverse("accounts.change_password")
    form = ChangePasswordForm(request.POST)
    if not form.is_valid():
        for errors in form.errors.values():
            for error in errors:
                messages.error(request, error)
        return see_other(redirect_url)

    if not form.passwords_match():
        messages.error(request, MSG_PASSWORDS_DIFFER)
        return see_other(redirect_url)

    username = await authentication.validator.get_username(request.user_id)
    credential = Credential(username=username, password=form.cleaned_data["current_password"])
    try:
        await authentication.validator.validate(credential)
    except InvalidCredentials:
        messages.error(request, MSG_INVALID_PASSWORD)
        return see_other(redirect_url)

    await authentication.validator.change_password(request.user_id, SecretStr(form.cleaned_data["new_password"]))
    metrics.incr("accounts.password.changed")
    messages.info(request, MSG_PASSWORD_CHANGED)
    return see_other(redirect_url)


@require_POST
@login_required
async def logout(request):
    await TypedSession(request.session).logout()
    messages.info(request, MSG_LOGGED_OUT)
    return see_other(reverse("accounts.login"))
