from django.http import HttpResponseRedirect

from email_validator import EmailNotValidError, validate_email


def parse_email(email):
    """Validate `email` and return its normalized ASCII form.

    Raises `EmailNotValidError` with a human readable reason when invalid.
    """
    # NOTE SMTPUTF8 isn't supported by the email delivery API, so we cannot
    #      enable it here until it is.
    info = validate_email(email.strip(), allow_smtputf8=False, check_deliverability=False)
    return info.ascii_email


def process_email(email):
    """Validates that the email is valid.

    Return email ascii encoded if valid, None if not.
    """
    if not email:
        return None

    try:
        return parse_email(email)
    except EmailNotValidError:
        return None


def see_other(url):
    """Redirect with a 303 so a form POST is followed up with a GET."""
    response = HttpResponseRedirect(url)
    response.status_code = 303
    return response
