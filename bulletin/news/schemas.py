from ninja import Field, Schema

from bulletin.news.idempotency import IDEMPOTENCY_KEY_MAX_LENGTH


class NewsletterContentSchema(Schema):
    html: str = Field(min_length=1)
    text: str = Field(min_length=1)


class PublishNewsletterSchema(Schema):
    # Used for the `/newsletters/` endpoint's request body validation.
    title: str = Field(min_length=1)
    content: NewsletterContentSchema
    idempotency_key: str = Field(min_length=1, max_length=IDEMPOTENCY_KEY_MAX_LENGTH)


class PublishResultSchema(Schema):
    status: str
    sent: int
    failed: int
    skipped: int


class ErrorSchema(Schema):
    status: str
    desc: str
    code: int
