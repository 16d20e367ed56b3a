# Import every mapped class so Base.metadata is complete whichever db module is loaded first.
from db.location import Location  # noqa: F401
from db.asset_type import AssetType  # noqa: F401
from db.users import User  # noqa: F401
from db.inventory.item import InventoryItem  # noqa: F401
from db.inventory.purchase import PurchaseRecord  # noqa: F401
from db.inventory.transfer import TransferRecord  # noqa: F401
from db.inventory.assignment import AssignmentRecord  # noqa: F401
from db.inventory.expenditure import ExpenditureRecord  # noqa: F401
