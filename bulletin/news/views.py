import logging
import re
import uuid

from django.contrib import messages
from django.db import Error, transaction
from django.http import HttpResponse, JsonResponse
from django.shortcuts import render
from django.urls import reverse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from bulletin import metrics
from bulletin.accounts.decorators import login_required
from bulletin.base.utils import see_other
from bulletin.news import publishing
from bulletin.news.delivery import NewsletterIssue
from bulletin.news.forms import PublishNewsletterForm, SubscribeForm
from bulletin.news.models import SUBSCRIPTION_TOKEN_LENGTH, Subscription, SubscriptionToken

log = logging.getLogger(__name__)

MSG_PUBLISHED = "The newsletter issue has been published!"
SUBSCRIPTION_TOKEN_RE = re.compile(rf"^[a-zA-Z0-9]{{{SUBSCRIPTION_TOKEN_LENGTH}}}$")


@require_http_methods(["GET", "POST"])
@login_required
async def newsletters(request):
    if request.method == "GET":
        return render(request, "news/newsletters.html", {"idempotency_key": str(uuid.uuid4())})

    form = PublishNewsletterForm(request.POST)
    if not form.is_valid():
        metrics.incr("news.views.publish.invalid_form")
        context = {"form": form, "idempotency_key": request.POST.get("idempotency_key") or str(uuid.uuid4())}
        return render(request, "news/newsletters.html", context, status=400)

    issue = NewsletterIssue(
        title=form.cleaned_data["title"],
        html_content=form.cleaned_data["html_content"],
        text_content=form.cleaned_data["text_content"],
    )

    def respond(report):
        return see_other(reverse("news.newsletters"))

    response = await publishing.publisher.publish_once(request.user_id, form.cleaned_data["idempotency_key"], issue, respond)
    # The flash message is a cookie, so it isn't part of the saved response. Add it every time.
    messages.info(request, MSG_PUBLISHED)
    return response


@require_POST
def subscribe(request):
    form = SubscribeForm(request.POST)
    if not form.is_valid():
        metrics.incr("news.views.subscribe.invalid_form")
        return JsonResponse({"status": "error", "errors": form.errors}, status=400)

    email = form.cleaned_data["email"]
    try:
        with transaction.atomic():
            subscription, created = Subscription.objects.get_or_create(email=email, defaults={"name": form.cleaned_data["name"]})
            if subscription.is_confirmed:
                # Nothing to do, but don't reveal that the address is already subscribed.
                metrics.incr("news.views.subscribe.already_confirmed")
                return JsonResponse({"status": "ok"})

            subscription.send_email_confirmation()
    except Error:
        log.exception("Failed to store a new subscriber")
        return JsonResponse({"status": "error", "errors": {"__all__": "Database error"}}, status=500)

    metrics.incr("news.views.subscribe.success", tags=[f"new:{created}"])
    return JsonResponse({"status": "ok"})


@require_GET
def confirm(request):
    token = request.GET.get("subscription_token", "")
    if not SUBSCRIPTION_TOKEN_RE.match(token):
        return HttpResponse("A valid subscription token is required.", status=400)

    try:
        subscription_token = SubscriptionToken.objects.select_related("subscription").get(subscription_token=token)
    except SubscriptionToken.DoesNotExist:
        metrics.incr("news.views.confirm.unknown_token")
        return HttpResponse("Unknown subscription token.", status=401)

    subscription = subscription_token.subscription
    if not subscription.is_confirmed:
        subscription.status = Subscription.CONFIRMED
        subscription.save(update_fields=["status"])
        metrics.incr("news.views.confirm.success")

    return render(request, "news/confirmed.html", {"name": subscription.name})
