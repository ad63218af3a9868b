"""
Management command to ensure a tenant exists.

Idempotent bootstrap for local setups and deployments. With --issue-token
it also prints a bearer token in the shape the auth gateway issues, so the
API can be exercised without the gateway running.

Usage:
    python manage.py ensure_tenant --slug=joes-pizza --name="Joe's Pizza"
    python manage.py ensure_tenant --slug=joes-pizza --issue-token --role=MANAGER
"""

import uuid
from decimal import Decimal, InvalidOperation

from django.core.management.base import BaseCommand, CommandError
from rest_framework_simplejwt.tokens import AccessToken

from core_backend.context import Role
from tenant.models import Tenant, default_currency, default_tax_rate


class Command(BaseCommand):
    help = "Ensure a tenant exists (idempotent bootstrap command)"

    def add_arguments(self, parser):
        parser.add_argument("--slug", type=str, required=True, help="Tenant slug")
        parser.add_argument("--name", type=str, default=None, help="Tenant display name")
        parser.add_argument("--currency", type=str, default=None, help="ISO 4217 currency code")
        parser.add_argument(
            "--tax-rate", type=str, default=None, help="Tax rate as a fraction, e.g. 0.05"
        )
        parser.add_argument(
            "--issue-token",
            action="store_true",
            help="Print a bearer token for a staff member of this tenant",
        )
        parser.add_argument(
            "--role",
            type=str,
            default=Role.OWNER,
            choices=Role.values,
            help="Role claim for the issued token",
        )

    def handle(self, *args, **options):
        slug = options["slug"]
        tax_rate = default_tax_rate()
        if options["tax_rate"] is not None:
            try:
                tax_rate = Decimal(options["tax_rate"])
            except InvalidOperation:
                raise CommandError(f"Invalid tax rate '{options['tax_rate']}'")
            if not Decimal("0") <= tax_rate <= Decimal("1"):
                raise CommandError("Tax rate must be between 0 and 1")

        tenant, created = Tenant.objects.get_or_create(
            slug=slug,
            defaults={
                "name": options["name"] or slug,
                "currency": (options["currency"] or default_currency()).upper(),
                "tax_rate": tax_rate,
            },
        )

        if created:
            self.stdout.write(self.style.SUCCESS(f"Created tenant: {tenant.slug} ({tenant.id})"))
        else:
            self.stdout.write(self.style.SUCCESS(f"Tenant already exists: {tenant.slug}"))

        self.stdout.write(f"  ID: {tenant.id}")
        self.stdout.write(f"  Name: {tenant.name}")
        self.stdout.write(f"  Currency: {tenant.currency}")
        self.stdout.write(f"  Tax rate: {tenant.tax_rate}")
        self.stdout.write(f"  Status: {tenant.status}")

        if options["issue_token"]:
            token = AccessToken()
            token["user_id"] = str(uuid.uuid4())
            token["tenant_id"] = str(tenant.id)
            token["role"] = options["role"]
            self.stdout.write("")
            self.stdout.write(f"Bearer token ({options['role']}):")
            self.stdout.write(str(token))
