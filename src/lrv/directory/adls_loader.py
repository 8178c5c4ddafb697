import logging

from azure.core.exceptions import AzureError
from azure.identity import DefaultAzureCredential
from azure.storage.filedatalake import DataLakeServiceClient

from lrv.common.errors import DirectoryError
from lrv.directory.memory import InMemoryMappingDirectory, InMemoryReferenceRangeDirectory
from lrv.directory.records import parse_mappings_jsonl, parse_ranges_jsonl

logger = logging.getLogger(__name__)


def datalake_client(account: str) -> DataLakeServiceClient:
    url = f"https://{account}.dfs.core.windows.net"
    return DataLakeServiceClient(account_url=url, credential=DefaultAzureCredential())


def _read_text(dl, *, container: str, path: str) -> str:
    try:
        fs = dl.get_file_system_client(container)
        download = fs.get_file_client(path).download_file()
        return download.readall().decode("utf-8")
    except AzureError as e:
        raise DirectoryError(f"Failed to read {container}/{path}: {e}") from e


def load_mapping_directory(dl, *, container: str, path: str) -> InMemoryMappingDirectory:
    text = _read_text(dl, container=container, path=path)
    try:
        directory = InMemoryMappingDirectory(parse_mappings_jsonl(text))
    except ValueError as e:
        raise DirectoryError(f"Malformed mapping directory {container}/{path}: {e}") from e
    logger.info("Loaded %d test mappings from %s/%s", len(directory), container, path)
    return directory


def load_reference_range_directory(dl, *, container: str, path: str) -> InMemoryReferenceRangeDirectory:
    text = _read_text(dl, container=container, path=path)
    try:
        directory = InMemoryReferenceRangeDirectory(parse_ranges_jsonl(text))
    except ValueError as e:
        raise DirectoryError(f"Malformed reference range directory {container}/{path}: {e}") from e
    logger.info("Loaded %d reference ranges from %s/%s", len(directory), container, path)
    return directory
