import json

from django.http import HttpResponse

from ninja import NinjaAPI, Router
from ninja.errors import ValidationError

from bulletin import errors, metrics
from bulletin.accounts import authentication
from bulletin.accounts.authentication import MissingBasicCredentials, basic_authentication
from bulletin.base.exceptions import InvalidCredentials
from bulletin.news import publishing
from bulletin.news.delivery import NewsletterIssue
from bulletin.news.schemas import ErrorSchema, PublishNewsletterSchema, PublishResultSchema

MSG_AUTH_REQUIRED = "Valid Basic credentials are required."

api = NinjaAPI(
    docs_url="/api/docs",
    title="Bulletin API",
    urls_namespace="api.v1",
    version="v1",
)


def _json_response(data, status=200):
    return HttpResponse(json.dumps(data), status=status, content_type="application/json")


def _auth_error():
    response = _json_response(
        {
            "status": "error",
            "desc": MSG_AUTH_REQUIRED,
            "code": errors.BULLETIN_AUTH_ERROR,
        },
        status=401,
    )
    response["WWW-Authenticate"] = 'Basic realm="publish"'
    return response


### /api/v1/newsletters URLS

newsletters_router = Router()


@newsletters_router.post(
    "/",
    url_name="newsletters.publish",
    description="Publish a newsletter issue to all confirmed subscribers",
    response={
        200: PublishResultSchema,
        400: ErrorSchema,
        401: ErrorSchema,
        500: ErrorSchema,
    },
)
async def publish_newsletter(request, body: PublishNewsletterSchema):
    try:
        credential = basic_authentication(request)
        user_id = await authentication.validator.validate(credential)
    except (MissingBasicCredentials, InvalidCredentials):
        metrics.incr("news.api.publish.auth_error")
        return _auth_error()

    issue = NewsletterIssue(
        title=body.title,
        html_content=body.content.html,
        text_content=body.content.text,
    )

    def respond(report):
        return _json_response(
            {
                "status": "ok",
                "sent": len(report.sent),
                "failed": len(report.failed),
                "skipped": len(report.skipped),
            }
        )

    return await publishing.publisher.publish_once(user_id, body.idempotency_key, issue, respond)


# So django-ninja returns a pydantic validation error in a consistent JSON shape.
@api.exception_handler(ValidationError)
def validation_errors(request, exc):
    error = exc.errors[0]
    return _json_response(
        {
            "status": "error",
            "desc": error.get("msg"),
            "code": errors.BULLETIN_USAGE_ERROR,
        },
        status=400,
    )
