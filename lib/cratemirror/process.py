#!/usr/bin/env python
#
# Copyright (c) 2024-2025, Ryan Galloway (ryan@rsgalloway.com)
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#  - Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
#  - Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
#  - Neither the name of the software nor the names of its contributors
#    may be used to endorse or promote products derived from this software
#    without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.
#

__doc__ = """
Contains the crate metadata mirroring engine: walks a sharded package index,
checks the cached metadata of each crate and fetches the stale ones in
parallel.
"""

import concurrent.futures as cf
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from tqdm import tqdm
from typing import Generator, List, Tuple, Union

from cratemirror import config
from cratemirror.logger import log
from cratemirror.model import CrateMetadata
from cratemirror.registry import RegistryClient
from cratemirror.shard import build_new_path

PathLike = Union[str, Path]


@dataclass
class MirrorStats:
    """Counts of crates processed by a mirror run."""

    total: int = 0
    downloaded: int = 0
    cached: int = 0
    failed: int = 0


def list_dirs(path: Path) -> List[Path]:
    """List the subdirectories of path, sorted by name. Other entries are
    ignored.

    :param path: Directory to list.
    :raises OSError: if the directory cannot be read.
    :return: Sorted list of subdirectory paths.
    """
    with os.scandir(path) as it:
        return sorted(Path(e.path) for e in it if e.is_dir())


def metadata_path(dst_dir: Path, crate_name: str) -> Path:
    """Get the metadata file path of a crate in its destination directory."""
    return dst_dir / f"{crate_name}{config.METADATA_EXT}"


def atomic_replace(src_tmp: Path, dst: Path) -> None:
    """Atomically replace dst with src_tmp.

    :param src_tmp: Temporary source file path.
    :param dst: Destination file path.
    """
    os.replace(src_tmp, dst)


def write_crate_metadata(path: Path, metadata: str) -> None:
    """Write metadata to path. The content goes to a temporary file in the
    same directory first, so readers see either the old file or the new one.

    :param path: Metadata file path.
    :param metadata: Raw metadata to store.
    :raises OSError: if the file cannot be written.
    """
    tf = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    tmp_path = Path(tf.name)
    try:
        with tf:
            tf.write(metadata)
        os.chmod(tmp_path, 0o644)
        atomic_replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def is_fresh(src_dir: Path, metadata_file: Path, crate_name: str) -> bool:
    """Check if the cached metadata of a crate knows every version found in
    its index directory.

    Unreadable or invalid metadata is logged and reported as stale so the
    crate gets fetched again.

    :param src_dir: Crate directory in the index, one subdirectory per version.
    :param metadata_file: Cached metadata file.
    :param crate_name: Crate name, for logging.
    :return: True if the metadata is up to date, False if it must be fetched.
    """
    try:
        metadata = CrateMetadata.load(metadata_file)
    except FileNotFoundError:
        log.debug("%s: not found", crate_name)
        return False
    except (OSError, ValueError) as e:
        log.error("%s: can't read file %s: %s", crate_name, metadata_file, e)
        return False

    known_versions = metadata.version_numbers()

    try:
        versions = list_dirs(src_dir)
    except OSError as e:
        log.error("%s: can't list versions in %s: %s", crate_name, src_dir, e)
        return False

    for version in versions:
        if version.name not in known_versions:
            log.debug("%s: version %s not found", crate_name, version.name)
            return False

    log.debug("%s: in cache", crate_name)
    return True


def process_crate(src_dir: Path, dst_dir: Path, client: RegistryClient) -> bool:
    """Update the metadata file of a crate if needed.

    :param src_dir: Crate directory in the index.
    :param dst_dir: Crate directory in the mirror.
    :param client: Registry client used to fetch metadata.
    :raises RegistryError: if the metadata cannot be fetched.
    :raises OSError: if the metadata cannot be written.
    :return: True if metadata was downloaded, False if the cache is fresh.
    """
    crate_name = src_dir.name
    path_out = metadata_path(dst_dir, crate_name)

    if not dst_dir.exists():
        dst_dir.mkdir(parents=True, exist_ok=True)
    elif is_fresh(src_dir, path_out, crate_name):
        return False

    metadata = client.get_crate_data(crate_name)
    write_crate_metadata(path_out, metadata)
    log.info("%s: downloaded", crate_name)
    return True


def process_crate_task(src_dir: Path, dst_dir: Path, client: RegistryClient) -> str:
    """Worker entry point wrapping process_crate. Never raises.

    :param src_dir: Crate directory in the index.
    :param dst_dir: Crate directory in the mirror.
    :param client: Registry client used to fetch metadata.
    :return: "downloaded", "cached", or "error:<message>"
    """
    try:
        if process_crate(src_dir, dst_dir, client):
            return "downloaded"
        return "cached"
    except Exception as e:
        log.error("Can't process crate %s: %s", src_dir, e)
        return f"error:{e}"


def walk_index(
    src_root: Path, dst_root: Path
) -> Generator[Tuple[Path, Path], None, None]:
    """Walk a sharded index and yield (crate index dir, crate mirror dir)
    pairs. The first level directory name decides the depth: "1" and "2"
    hold crate directories, any other holds two more levels.

    :param src_root: Index root directory.
    :param dst_root: Mirror root directory.
    :raises OSError: if an index directory cannot be listed.
    """
    for level1 in list_dirs(src_root):
        dst_level1 = build_new_path(dst_root, level1)

        # 1 and 2 character crate names
        if level1.name in config.SHORT_NAME_DIRS:
            for crate_dir in list_dirs(level1):
                yield crate_dir, build_new_path(dst_level1, crate_dir)
            continue

        # first two letters, then next two letters, then the crate
        for level2 in list_dirs(level1):
            dst_level2 = build_new_path(dst_level1, level2)
            for crate_dir in list_dirs(level2):
                yield crate_dir, build_new_path(dst_level2, crate_dir)


def parse_directory(
    dirname_in: PathLike,
    dirname_out: PathLike,
    count: int = config.WORKERS_DEFAULT,
    client: RegistryClient = None,
    progress: bool = False,
) -> MirrorStats:
    """Update the metadata of every crate in the index using count worker
    threads. Returns once every crate found has been processed.

    Errors on a single crate are logged and do not stop the run. Errors
    listing the index are raised once the crates already queued are done.
    On KeyboardInterrupt queued crates are canceled and only the ones
    being fetched are waited for.

    :param dirname_in: Index root directory.
    :param dirname_out: Mirror root directory.
    :param count: Number of worker threads.
    :param client: Registry client, defaults to RegistryClient().
    :param progress: Show a progress bar.
    :raises NotADirectoryError: if dirname_in is not a directory.
    :raises OSError: if the index cannot be walked.
    :return: Run statistics.
    """
    src_root = Path(dirname_in)
    dst_root = Path(dirname_out)
    if not src_root.is_dir():
        raise NotADirectoryError(f"Invalid directory: '{dirname_in}'")
    if count < 1:
        raise ValueError(f"worker count must be at least 1, got {count}")

    if client is None:
        client = RegistryClient(pool_size=count)

    stats = MirrorStats()
    futures = []
    t0 = time.time()

    log.debug("mirroring %s -> %s with %d workers", src_root, dst_root, count)

    with tqdm(total=0, desc="[mirror]", unit="crate", disable=not progress) as pbar:
        with cf.ThreadPoolExecutor(
            max_workers=count, thread_name_prefix="fetch"
        ) as ex:
            try:
                for src_dir, dst_dir in walk_index(src_root, dst_root):
                    futures.append(
                        ex.submit(process_crate_task, src_dir, dst_dir, client)
                    )
                    pbar.total += 1
                    pbar.refresh()

                # wait for every crate, failed ones included
                for fut in cf.as_completed(futures):
                    res = fut.result()
                    if res == "downloaded":
                        stats.downloaded += 1
                    elif res == "cached":
                        stats.cached += 1
                    else:
                        stats.failed += 1
                    pbar.update(1)

            except KeyboardInterrupt:
                # only crates already being fetched finish
                canceled = sum(fut.cancel() for fut in futures)
                log.warning("interrupted, %d queued crates canceled", canceled)
                raise

    stats.total = len(futures)

    log.debug(
        "done in %.2fs crates=%d downloaded=%d cached=%d errors=%d",
        time.time() - t0,
        stats.total,
        stats.downloaded,
        stats.cached,
        stats.failed,
    )
    return stats
