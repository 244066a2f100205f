from querycraft.query_transform.base import BaseQueryTransform, IdentityQueryTransform, HyDEQueryTransform

__all__ = ["BaseQueryTransform", "IdentityQueryTransform", "HyDEQueryTransform"]
