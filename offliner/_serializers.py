import base64
import json
import pickle
import typing as tp

from offliner._exceptions import StorageError
from offliner._headers import Headers
from offliner._models import CacheEntry, EntryMeta, Request, Response

__all__ = ("PickleSerializer", "JSONSerializer", "BaseSerializer")


class BaseSerializer:
    def dumps(self, entry: CacheEntry) -> tp.Union[str, bytes]:
        raise NotImplementedError()

    def loads(self, data: tp.Union[str, bytes]) -> CacheEntry:
        raise NotImplementedError()

    @property
    def is_binary(self) -> bool:
        raise NotImplementedError()


class PickleSerializer(BaseSerializer):
    """
    A simple pickle-based serializer.
    """

    def dumps(self, entry: CacheEntry) -> tp.Union[str, bytes]:
        return pickle.dumps(entry.copy())

    def loads(self, data: tp.Union[str, bytes]) -> CacheEntry:
        if not isinstance(data, bytes):
            raise StorageError("Pickled entries must be bytes")
        try:
            entry = pickle.loads(data)
        except (pickle.UnpicklingError, EOFError, AttributeError) as exc:
            raise StorageError(f"Could not unpickle cache entry: {exc}") from exc
        if not isinstance(entry, CacheEntry):
            raise StorageError(f"Expected a CacheEntry, got {type(entry).__name__}")
        return entry

    @property
    def is_binary(self) -> bool:  # pragma: no cover
        return True


class JSONSerializer(BaseSerializer):
    """A simple json-based serializer."""

    def dumps(self, entry: CacheEntry) -> tp.Union[str, bytes]:
        """
        Dumps a cache entry.

        :param entry: The request, response and metadata to serialize
        :type entry: CacheEntry
        :return: Serialized entry
        :rtype: tp.Union[str, bytes]
        """
        response_dict = {
            "status_code": entry.response.status_code,
            "headers": entry.response.headers.multi_items(),
            "content": base64.b64encode(entry.response.content).decode("ascii"),
        }

        request_dict = {
            "method": entry.request.method,
            "url": entry.request.url,
            "headers": entry.request.headers.multi_items(),
            "mode": entry.request.mode,
            "destination": entry.request.destination,
        }

        metadata_dict = {
            "cache_key": entry.meta.cache_key,
            "generation": entry.meta.generation,
            "created_at": entry.meta.created_at,
        }

        full_json = {
            "response": response_dict,
            "request": request_dict,
            "metadata": metadata_dict,
        }

        return json.dumps(full_json, indent=4)

    def loads(self, data: tp.Union[str, bytes]) -> CacheEntry:
        """
        Loads a cache entry from serialized data.

        :param data: Serialized data
        :type data: tp.Union[str, bytes]
        :return: The cache entry
        :rtype: CacheEntry
        """
        try:
            full_json = json.loads(data)
            response_dict = full_json["response"]
            request_dict = full_json["request"]
            metadata_dict = full_json["metadata"]

            response = Response(
                status_code=response_dict["status_code"],
                headers=Headers([(key, value) for key, value in response_dict["headers"]]),
                content=base64.b64decode(response_dict["content"].encode("ascii")),
            )
            request = Request(
                method=request_dict["method"],
                url=request_dict["url"],
                headers=Headers([(key, value) for key, value in request_dict["headers"]]),
                mode=request_dict.get("mode"),
                destination=request_dict.get("destination"),
            )
            meta = EntryMeta(
                cache_key=metadata_dict["cache_key"],
                generation=metadata_dict["generation"],
                created_at=metadata_dict["created_at"],
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise StorageError(f"Could not decode cache entry: {exc}") from exc

        return CacheEntry(request=request, response=response, meta=meta)

    @property
    def is_binary(self) -> bool:
        return False
