# Leads: append-only store of completed intakes

from app.services.leads.leads import SqlLeadStore, insert_lead

__all__ = ["SqlLeadStore", "insert_lead"]
