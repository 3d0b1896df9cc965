from __future__ import annotations

NO_VALID_POLICIES_MESSAGE = "No valid policies found. Please check your YAML format."


class PolicyDecodeError(ValueError):
    pass


class NoValidPoliciesError(ValueError):
    def __init__(self, msg: str = NO_VALID_POLICIES_MESSAGE) -> None:
        super().__init__(msg)
