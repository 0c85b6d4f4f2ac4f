import getpass

from django.core.management.base import BaseCommand, CommandError
from django.db import IntegrityError, transaction

from bulletin.accounts.password import hasher
from bulletin.accounts.store import CredentialStore


class Command(BaseCommand):
    help = "Create an operator account that can log in and publish newsletters."

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument(
            "--password",
            dest="password",
            default=None,
            help="Password for the new operator. Prompted for when omitted.",
        )

    def handle(self, *args, **options):
        username = options["username"]
        password = options["password"]
        if password is None:
            password = getpass.getpass("Password: ")
            if password != getpass.getpass("Password (again): "):
                raise CommandError("Passwords do not match.")
        if not password:
            raise CommandError("A password is required.")

        try:
            with transaction.atomic():
                user = CredentialStore().create_user(username, hasher.hash(password))
        except IntegrityError as exc:
            raise CommandError(f"User {username!r} already exists.") from exc

        self.stdout.write(f"Created user {user.username} ({user.user_id})")
