from bogo.engine.context import CartContext, MAX_DEPTH
from bogo.engine.eligibility import eligible_free_quantity, qualifies
from bogo.engine.errors import BogoError, ConfigurationFault, LineRefused, RecursionFault
from bogo.engine.reconciler import BogoEngine
from bogo.engine.usage import UsageRecorder

__all__ = [
    "BogoEngine",
    "CartContext",
    "MAX_DEPTH",
    "UsageRecorder",
    "eligible_free_quantity",
    "qualifies",
    "BogoError",
    "ConfigurationFault",
    "LineRefused",
    "RecursionFault",
]
