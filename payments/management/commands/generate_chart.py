"""Generate chart data for a payments resource from the command line.

Runs the chart generation stream against the upstream records API and writes
each state as one JSON line, ending with the terminal state.
"""

from __future__ import annotations

import json

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from charts.dto import ChartErrorState, ChartGenerationState, ChartRequest
from charts.generator import generate_chart_data
from charts.resources import AggregationType, PaymentChannel, ResourceType
from payments.client import PaystackRecordsClient


class Command(BaseCommand):
    """Generate chart data and print every generation state as JSON."""

    help = "Generate chart data for a payments resource and print each state as a JSON line."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("--resource", required=True, choices=[str(item) for item in ResourceType])
        parser.add_argument("--aggregation", required=True, choices=[str(item) for item in AggregationType])
        parser.add_argument("--status", default=None, help="Optional status filter.")
        parser.add_argument("--from", dest="from_date", default=None, help="Start date (YYYY-MM-DD).")
        parser.add_argument("--to", dest="to_date", default=None, help="End date (YYYY-MM-DD).")
        parser.add_argument("--currency", default=None, help="Optional currency filter (e.g. NGN).")
        parser.add_argument(
            "--channel",
            default=None,
            choices=[str(item) for item in PaymentChannel],
            help="Payment channel filter (transactions only).",
        )
        parser.add_argument(
            "--token",
            default=None,
            help="API bearer token; defaults to the PAYSTACK_API_TOKEN setting.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        token: str | None = options["token"] or settings.PAYSTACK_API_TOKEN
        if not token:
            raise CommandError("No API token available; pass --token or set PAYSTACK_API_TOKEN.")

        request = ChartRequest.from_params(
            {
                "resourceType": options["resource"],
                "aggregationType": options["aggregation"],
                "status": options["status"],
                "from": options["from_date"],
                "to": options["to_date"],
                "currency": options["currency"],
                "channel": options["channel"],
            }
        )

        def write_state(state: ChartGenerationState) -> None:
            self.stdout.write(json.dumps(state.as_payload(), sort_keys=True))

        terminal = generate_chart_data(request, PaystackRecordsClient(), token, on_state=write_state)
        if isinstance(terminal, ChartErrorState):
            raise CommandError(terminal.error)
        return None
