"""Upload engine: walk, upload and hash concurrently, then publish the manifest."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import boto3
from botocore.exceptions import BotoCoreError
from rich.console import Console

from manifest_upload.aggregator import ManifestAggregator, UploadFailure
from manifest_upload.config import Config
from manifest_upload.destination import Destination, parse_destination
from manifest_upload.exceptions import ConfigError
from manifest_upload.manifest import ManifestPublisher
from manifest_upload.storage import ObjectStore, S3ObjectStore
from manifest_upload.uploader import UploadResult, upload_file
from manifest_upload.walker import FileEntry, walk_tree


@dataclass(frozen=True)
class RunResult:
    manifest: Dict[str, str]
    manifest_bytes: bytes
    destination: Destination
    local_manifest_path: Path


class ManifestUpload:
    """Upload a local tree to S3 and publish a manifest of content digests."""

    def __init__(self, config: Config, console: Optional[Console] = None):
        """Initialize the upload engine."""
        self.config = config
        self.console = console or Console(stderr=True)
        self.publisher = ManifestPublisher(filename=config.manifest.filename)

        # AWS clients will be created lazily to use current config
        self._s3_client = None

    @property
    def s3_client(self):
        """Get S3 client, creating it lazily with current config."""
        if self._s3_client is None:
            try:
                session = boto3.Session(**self.config.get_aws_session_kwargs())
                self._s3_client = session.client('s3', **self.config.get_s3_client_kwargs())
            except BotoCoreError as e:
                raise ConfigError(f"Cannot create S3 client: {e}") from e
        return self._s3_client

    def _reset_aws_clients(self) -> None:
        """Reset AWS clients to pick up config changes."""
        self._s3_client = None

    def run(
        self,
        src: Union[str, Path],
        dst: str,
        manifest_dir: Optional[Union[str, Path]] = None,
    ) -> RunResult:
        """
        Upload ``src`` under ``dst`` and publish its manifest.

        Args:
            src: Local file or directory to upload
            dst: Destination URI, ``[scheme://]bucket/prefix``
            manifest_dir: Directory for the local manifest copy (defaults to config)

        Returns:
            RunResult with the manifest and where it was written

        Raises:
            ManifestUploadError: On any failure; nothing is published in that case
        """
        # Validate the destination before touching the filesystem or network
        destination = parse_destination(dst)
        root = Path(src).resolve()
        output_dir = Path(manifest_dir) if manifest_dir is not None else self.config.manifest.output_dir

        self.console.print(f"[bright_black]Local Path: {root}[/bright_black]")
        self.console.print(f"[bright_black]S3 Target: {destination.uri}[/bright_black]")

        store = S3ObjectStore(self.s3_client, destination.bucket, part_size=self.config.s3.part_size)
        manifest = self.run_pipeline(store, root, destination)

        data = self.publisher.publish(manifest, store, destination, output_dir)
        self.console.print(
            f"[green]Uploaded {len(manifest)} file(s); manifest at "
            f"{destination.key_for(self.publisher.filename)}[/green]"
        )

        return RunResult(
            manifest=manifest,
            manifest_bytes=data,
            destination=destination,
            local_manifest_path=output_dir / self.publisher.filename,
        )

    def run_pipeline(self, store: ObjectStore, root: Path, destination: Destination) -> Dict[str, str]:
        """
        Upload every regular file under ``root`` concurrently and collect digests.

        The walk dispatches tasks without waiting on them; outcomes already
        available are drained between dispatches so a failure stops the walk
        early. On any error outstanding work is cancelled and the error is
        re-raised.

        Returns:
            Manifest mapping relative path to ``sha256:<hex>``
        """
        aggregator = ManifestAggregator(on_result=self._print_uploaded if self.config.verbose else None)
        executor = ThreadPoolExecutor(
            max_workers=self.config.s3.max_concurrency,
            thread_name_prefix="manifest-upload",
        )

        try:
            for entry in walk_tree(root):
                if self.config.verbose:
                    self.console.print(f"Uploading: {entry.path}")
                executor.submit(self._upload_task, store, entry, destination, aggregator)
                aggregator.dispatched()
                aggregator.drain()

            manifest = aggregator.collect()
        except BaseException:
            aggregator.cancel()
            executor.shutdown(wait=True, cancel_futures=True)
            raise

        executor.shutdown(wait=True)
        return manifest

    def _upload_task(
        self,
        store: ObjectStore,
        entry: FileEntry,
        destination: Destination,
        aggregator: ManifestAggregator,
    ) -> None:
        """Run one upload and report exactly one outcome to the aggregator."""
        if aggregator.cancelled:
            return

        try:
            result = upload_file(
                store,
                entry.path,
                entry.relative_path,
                destination.key_for(entry.relative_path),
                chunk_size=self.config.s3.chunk_size,
                should_stop=lambda: aggregator.cancelled,
            )
        except Exception as e:
            aggregator.report(UploadFailure(entry.relative_path, e))
            return

        aggregator.report(result)

    def _print_uploaded(self, result: UploadResult) -> None:
        self.console.print(f"Uploaded: {result.relative_path}")
