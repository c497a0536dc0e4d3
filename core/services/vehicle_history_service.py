"""
Vehicle service history by customer phone.

Read-only view across job cards and invoices. A visit shows the invoiced
final amount when an invoice exists, otherwise the job card's running total.
"""

from clients.postgres_client import PostgresClient
from core.exceptions import NotFoundError
from core.models import Invoice, JobCard, ServiceVisit, VehicleHistory, VehicleRecord


class VehicleHistoryService:
    """Service for vehicle history lookups."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def history_for_phone(self, phone: str) -> VehicleHistory:
        """
        Group a customer's job cards by vehicle.

        Args:
            phone: Customer phone number

        Returns:
            VehicleHistory with vehicles in order of their latest visit

        Raises:
            NotFoundError: If the phone has no job cards
        """
        rows = self.postgres.execute(
            """
            SELECT * FROM job_cards
            WHERE phone = %s AND deleted_at IS NULL
            ORDER BY created_at DESC
            """,
            (phone,)
        )
        if not rows:
            raise NotFoundError("Service history", f"for {phone}")

        job_cards = [JobCard.model_validate(row) for row in rows]

        invoice_rows = self.postgres.execute(
            "SELECT * FROM invoices WHERE job_card_id = ANY(%s::uuid[])",
            ([jc.id for jc in job_cards],)
        )
        invoices = {
            inv.job_card_id: inv
            for inv in (Invoice.model_validate(row) for row in invoice_rows)
        }

        vehicles: dict[str, VehicleRecord] = {}
        for jc in job_cards:
            invoice = invoices.get(jc.id)
            visit = ServiceVisit(
                job_card_number=jc.job_card_number,
                date=jc.created_at,
                services=[s.name for s in jc.services_requested],
                total_amount=invoice.final_amount if invoice else jc.final_total,
                status=jc.status,
                invoice_number=invoice.invoice_number if invoice else None,
                payment_status=invoice.payment_status if invoice else None,
            )

            record = vehicles.get(jc.vehicle_number)
            if record is None:
                vehicles[jc.vehicle_number] = VehicleRecord(
                    vehicle_number=jc.vehicle_number,
                    vehicle_type=jc.vehicle_type,
                    vehicle_brand=jc.vehicle_brand,
                    vehicle_model=jc.vehicle_model,
                    services=[visit],
                )
            else:
                record.services.append(visit)

        return VehicleHistory(
            phone=phone,
            customer_name=job_cards[0].customer_name,
            total_vehicles=len(vehicles),
            total_services=len(job_cards),
            vehicles=list(vehicles.values()),
        )
