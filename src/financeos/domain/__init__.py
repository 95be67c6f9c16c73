"""Domain layer for financeos.

Services are imported from their modules (``financeos.domain.ledger`` and
so on); this package does not re-export them because the database layer
imports ``financeos.domain.entities`` at import time.
"""
