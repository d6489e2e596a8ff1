"""
Ring up a sale from the command line.

Logs in, scans barcodes into a cart, and either prices the cart
(--dry-run) or records the sale and prints the receipt.

Barcodes are given as BARCODE or BARCODE:QTY.
"""

import argparse
import getpass
import os
import sys
from pathlib import Path

# Add parent directory to path so we can import from services
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.cart import Cart
from domain.errors import PosError
from domain.formatting import format_rupiah
from services import catalog_service
from services.checkout_service import CheckoutService, preview
from services.preferences import default_store, load_receipt_settings
from services.receipt_service import RECEIPT_PAPER_SIZES, receipt_from_checkout, receipt_lines_text
from services.session import SessionState


def parse_scan(value: str):
    """Split BARCODE[:QTY] into (barcode, quantity)."""
    barcode, _, qty = value.partition(":")
    if not qty:
        return barcode, 1
    try:
        return barcode, int(qty)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid quantity in '{value}'")


def build_cart(scans, products) -> Cart:
    cart = Cart()
    for barcode, quantity in scans:
        line = cart.scan(barcode, products)
        if quantity != 1:
            cart.update_quantity(line.product_id, line.quantity + quantity - 1)
    return cart


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Ring up a sale and print its receipt",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Price a cart without recording it
  python checkout_cli.py --email kasir@toko.id 8991234567890:2 8997654321098 --payment 50000 --dry-run

  # Record the sale with 10% discount and 11% tax on a 58mm receipt
  python checkout_cli.py --email kasir@toko.id 8991234567890 --payment 20000 --discount 10 --tax 11 --paper-size 58mm
        """
    )

    parser.add_argument("scans", nargs="+", type=parse_scan, help="Barcodes to scan (BARCODE or BARCODE:QTY)")
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument(
        "--password",
        default=os.getenv("IDCASHIER_PASSWORD"),
        help="Account password (default: IDCASHIER_PASSWORD, otherwise prompted)"
    )
    parser.add_argument("--payment", default="0", help="Amount paid by the customer")
    parser.add_argument("--discount", default="0", help="Discount percent (0-100)")
    parser.add_argument("--tax", default="0", help="Tax percent")
    parser.add_argument("--customer-id", default=None, help="Customer id (default: walk-in customer)")
    parser.add_argument("--paper-size", default="80mm", choices=RECEIPT_PAPER_SIZES, help="Receipt paper size")
    parser.add_argument("--no-decimals", action="store_true", help="Print amounts without decimals")
    parser.add_argument("--dry-run", action="store_true", help="Price the cart without recording the sale")

    args = parser.parse_args()
    password = args.password or getpass.getpass("Password: ")
    store = default_store()
    session = SessionState(store)

    try:
        user = session.sign_in(args.email, password)
        if "sales" not in session.pages:
            print("[ERROR] Permission denied: this account cannot open the sales page", file=sys.stderr)
            return 1

        products = catalog_service.list_products(user)
        cart = build_cart(args.scans, products)

        if args.dry_run:
            summary = preview(cart, args.discount, args.tax, args.payment)
            two = not args.no_decimals
            for line in cart.lines:
                print(f"{line.quantity} x {line.name:<30} {format_rupiah(line.item_subtotal, two)}")
            print("-" * 50)
            print(f"Subtotal: {format_rupiah(summary.breakdown.subtotal, two)}")
            print(f"Diskon:   {format_rupiah(summary.breakdown.discount_amount, two)}")
            print(f"Pajak:    {format_rupiah(summary.breakdown.tax_amount, two)}")
            print(f"Total:    {format_rupiah(summary.total_amount, two)}")
            print(f"Kembali:  {format_rupiah(summary.change_amount, two)}")
            for warning in summary.warnings:
                print(f"[WARNING] {warning}")
            return 0 if summary.is_payment_sufficient else 1

        result = CheckoutService().process_payment(
            user,
            cart,
            payment_amount=args.payment,
            discount_percent=args.discount,
            tax_percent=args.tax,
            customer_id=args.customer_id,
        )
        view = receipt_from_checkout(
            result,
            load_receipt_settings(store, user),
            paper_size=args.paper_size,
            use_two_decimals=not args.no_decimals,
        )
        for warning in result.warnings:
            print(f"[WARNING] {warning}")
        print("\n".join(receipt_lines_text(view)))
        print(f"\n[SUCCESS] Sale recorded: {result.sale_id}")
        return 0

    except PosError as e:
        print(f"[ERROR] {e.title}: {e.message}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\n\nCheckout interrupted by user")
        return 130

    finally:
        session.logout()


if __name__ == "__main__":
    sys.exit(main())
