from photomemo.client.api import ApiError, PhotoMemoClient
from photomemo.client.session import ClientSession

__all__ = ["ApiError", "ClientSession", "PhotoMemoClient"]
