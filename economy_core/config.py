"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from pydantic_settings import BaseSettings


class EconomySettings(BaseSettings):
    """Economy account configuration"""
    
    # Account naming
    debt_account_suffix: str = "[DEBT]-"  # Appended to the owner's name for its debt account
    
    # Default caps for new bank accounts ("0" = uncapped)
    default_balance_cap: str = "0"
    default_debt_cap: str = "0"
    
    # Ledger configuration
    currency_code: str = "USD"
    database_path: str = ":memory:"  # SQLite path for the reference ledger
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    
    class Config:
        env_prefix = "ECONOMY_"
        env_file = ".env"
        case_sensitive = False
    
    @property
    def balance_cap(self) -> Decimal:
        """Default balance cap as a Decimal"""
        return Decimal(self.default_balance_cap)
    
    @property
    def debt_cap(self) -> Decimal:
        """Default debt cap as a Decimal"""
        return Decimal(self.default_debt_cap)


# Global settings instance
settings = EconomySettings()


def get_settings() -> EconomySettings:
    """Get global settings instance"""
    return settings


def reload_settings() -> EconomySettings:
    """Reload settings from environment"""
    global settings
    settings = EconomySettings()
    return settings
