# chatsync/common/base/base_config.py
# =============================================================================
# BaseConfig - Foundation for all chatsync configuration classes
#
# - SettingsConfigDict (pydantic-settings v2)
# - Automatic .env file loading
# - Case-insensitive environment variables
# - Nested config support via __ delimiter
# - SecretStr for sensitive values
# - @lru_cache singleton pattern for factory functions
#
# Usage:
#     from chatsync.common.base.base_config import BaseConfig, BASE_CONFIG_DICT
#     from pydantic_settings import SettingsConfigDict
#
#     class MyConfig(BaseConfig):
#         model_config = SettingsConfigDict(
#             **BASE_CONFIG_DICT,
#             env_prefix="MY_"
#         )
#         timeout_ms: int = 5000
#
#     @lru_cache(maxsize=1)
#     def get_my_config() -> MyConfig:
#         return MyConfig()
# =============================================================================

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_CONFIG_DICT = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    case_sensitive=False,
    extra="ignore",
    env_nested_delimiter="__",
)


class BaseConfig(BaseSettings):
    """Base configuration class for all chatsync configs.

    Environment Variable Naming:
    - Use domain-specific prefixes (CHAT_, REDIS_, STORAGE_)
    - Nested values use __ delimiter (e.g., REDIS__POOL__MAX_SIZE)

    Secrets Handling:
    - All sensitive fields (passwords, keys, tokens) should use SecretStr
    - Access raw value via .get_secret_value() when needed

    Singleton Pattern:
    - Each config has a factory function with @lru_cache(maxsize=1)
    """

    model_config = BASE_CONFIG_DICT

    def __repr__(self) -> str:
        """Safe repr that masks secrets."""
        class_name = self.__class__.__name__
        fields = []
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            if isinstance(value, SecretStr):
                fields.append(f"{field_name}=SecretStr('**********')")
            else:
                fields.append(f"{field_name}={value!r}")
        return f"{class_name}({', '.join(fields)})"
