from .batch_uploader import BatchUploader, create_batches, filter_and_sort_files
from .publisher import RepositoryPublisher
from .summary import build_readme, build_readme_record, render_directory_tree

__all__ = [
    "BatchUploader",
    "RepositoryPublisher",
    "build_readme",
    "build_readme_record",
    "create_batches",
    "filter_and_sort_files",
    "render_directory_tree",
]
