from django.core.management.base import BaseCommand, CommandError

from ledger.models import Wallet
from ledger.services import WalletService


class Command(BaseCommand):
    help = (
        "Checks every wallet balance against its ledger entries and active holds. "
        "Reports mismatches only; balances are never rewritten."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--wallet",
            dest="wallet_uuid",
            help="Check a single wallet by UUID.",
        )

    def handle(self, *args, **options):
        wallets = Wallet.objects.order_by("id")
        if options.get("wallet_uuid"):
            wallets = wallets.filter(uuid=options["wallet_uuid"])

        self.stdout.write("Checking wallet ledgers...")
        checked = 0
        problems = []
        for wallet in wallets.iterator():
            checked += 1
            ledger_balance = WalletService.ledger_balance(wallet)
            if ledger_balance != wallet.balance:
                problems.append(
                    f"wallet={wallet.uuid} balance={wallet.balance} ledger={ledger_balance}"
                )
            held = WalletService.active_hold_total(wallet)
            if held > wallet.balance:
                problems.append(
                    f"wallet={wallet.uuid} balance={wallet.balance} active_holds={held}"
                )

        for problem in problems:
            self.stdout.write(self.style.WARNING(f"Mismatch: {problem}"))

        if problems:
            raise CommandError(
                f"{len(problems)} ledger mismatch(es) found in {checked} wallet(s)."
            )
        self.stdout.write(self.style.SUCCESS(f"{checked} wallet(s) consistent."))
