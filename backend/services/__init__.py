from .config_service import ConfigService
from .session_policy import SessionPolicy
from .session_store_service import SessionStore, SessionState, QueuedMessage
from .prompt_bank_service import PromptBankService
from .idle_sweeper_service import IdleSweeperService
from .companion_service import CompanionService
from .llm_service import create_llm_service


__all__ = [
    'ConfigService', 'SessionPolicy',
    'SessionStore', 'SessionState', 'QueuedMessage',
    'PromptBankService', 'IdleSweeperService',
    'CompanionService', 'create_llm_service'
]
