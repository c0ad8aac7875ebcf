from .checkout import initiate_checkout, checkout_payload, safe_base_url

__all__ = ["initiate_checkout", "checkout_payload", "safe_base_url"]
