from usergate.apps.accounts.accounts_service import AccountsService
from usergate.apps.accounts.core import get_accounts_config, reset_accounts_config

__all__ = ["AccountsService", "get_accounts_config", "reset_accounts_config"]
