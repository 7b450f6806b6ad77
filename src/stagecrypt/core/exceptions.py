"""
Exceptions for stagecrypt
All typed failures derive from StagecryptError so callers have a single catch-all
"""


class StagecryptError(Exception):
    # general container for errors
    pass


class FormatError(StagecryptError):
    # raised when a value is not a well-formed ENC2 envelope
    pass


class MissingSecretKeyError(StagecryptError):
    # raised when the stage secret key variable is absent or blank
    pass


class KeyDerivationError(StagecryptError):
    # raised when Argon2id derivation cannot run (bad master secret or salt)
    pass


class IntegrityError(StagecryptError):
    # raised on an outer HMAC mismatch
    pass


class DecryptionError(StagecryptError):
    # raised when AES-GCM rejects the ciphertext or the plaintext is not UTF-8
    pass


class FileIoError(StagecryptError):
    # raised when reading or writing an env file fails
    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class EnvironmentFileNotFoundError(FileIoError):
    # raised when a stage or base env file does not exist
    pass


class InvalidStageError(StagecryptError):
    # raised for a stage name outside dev/qa/uat/preprod/prod
    pass
