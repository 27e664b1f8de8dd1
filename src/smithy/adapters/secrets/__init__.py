from smithy.adapters.secrets.file_store import SecretsManager, SecretsStoreError

__all__ = ["SecretsManager", "SecretsStoreError"]
