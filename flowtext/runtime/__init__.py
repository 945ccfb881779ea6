from flowtext.runtime.interpreter import IsolatedRuntime, PackageManager, load_runtime
from flowtext.runtime.loader import SingletonAsyncResource, get_resource, reset_resource

__all__ = [
    "IsolatedRuntime",
    "PackageManager",
    "SingletonAsyncResource",
    "get_resource",
    "load_runtime",
    "reset_resource",
]
