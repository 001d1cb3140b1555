# refund_window/policy/params/errors.py
# Load-time configuration errors (per-record errors live in core.errors)


class PolicyConfigError(RuntimeError):
    pass

class PolicyConfigValidationError(PolicyConfigError):
    pass
