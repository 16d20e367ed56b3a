"""
Inventory ledger.

Models:
- InventoryItem (on-hand quantity of one asset type at one location)
- PurchaseRecord (inbound stock)
- TransferRecord (movement between two locations, pending -> completed/rejected/cancelled)
- AssignmentRecord (quantity checked out to a person, active -> returned/expended)
- ExpenditureRecord (permanent consumption, approved is tri-state)
"""
