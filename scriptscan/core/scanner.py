from __future__ import annotations

import fnmatch
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from tqdm import tqdm

from .catalog import Catalog
from .engine import merge_reports, scan
from .matcher import MatchBudget
from .models import Report
from .utils import read_text_safely


DEFAULT_LOGGER_NAME = "scriptscan"
SLOW_SCAN_THRESHOLD_SECONDS = 2.0
DEFAULT_INCLUDE = ["*.lua"]
DEFAULT_EXCLUDE = [".git", ".venv", "node_modules", "venv", "__pycache__", "stream"]
DEFAULT_MAX_FILE_SIZE = 5_000_000
DEFAULT_WORKERS = 8


def configure_logging(verbose: bool = False, logger_name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Configure and return the package logger.

    Installs a single stream handler the first time it is called, so the
    scanners log sensibly even when the host application never called
    ``logging.basicConfig``. ``verbose`` lowers the level to INFO.
    """

    logger = logging.getLogger(logger_name)
    level = logging.INFO if verbose else logging.WARNING
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s")
        )
        logger.addHandler(handler)

    return logger


def scan_path(
    path: Path,
    catalog: Catalog,
    *,
    display_path: Optional[str] = None,
    budget: Optional[MatchBudget] = None,
    logger: Optional[logging.Logger] = None,
) -> Optional[Report]:
    """Read one file and scan it. Returns None when the file is binary or cannot be decoded."""
    log = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
    name = display_path or str(path)
    text = read_text_safely(path)
    if text is None:
        log.warning("Skipping %s: unreadable, binary or undecodable", name)
        return None
    return scan(catalog, text, file_path=name, budget=budget, logger=log.getChild("engine"))


class DirectoryScanner:
    def __init__(
        self,
        root: Path,
        catalog: Catalog,
        include_globs: Optional[List[str]] = None,
        exclude_dirs: Optional[List[str]] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        workers: int = DEFAULT_WORKERS,
        *,
        budget: Optional[MatchBudget] = None,
        logger: Optional[logging.Logger] = None,
        verbose: bool = False,
        show_progress: bool = True,
        progress_desc: str = "Scanning files",
    ) -> None:
        self.root = root
        self.catalog = catalog
        self.include_globs = include_globs or list(DEFAULT_INCLUDE)
        self.exclude_dirs = set(DEFAULT_EXCLUDE if exclude_dirs is None else exclude_dirs)
        self.max_file_size = max_file_size
        self.workers = max(1, workers)
        self.budget = budget
        base_logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self.logger = base_logger.getChild(self.__class__.__name__.lower())
        self.verbose = verbose
        if verbose:
            self.logger.setLevel(logging.INFO)
        self.show_progress = bool(show_progress)
        self.progress_desc = progress_desc
        self._progress_bar = None
        self._progress_lock = threading.Lock()
        self._slow_log_threshold = SLOW_SCAN_THRESHOLD_SECONDS

    def _iter_files(self) -> Iterator[Path]:
        for p in sorted(self.root.rglob("*")):
            if p.is_dir():
                continue
            rel_parts = p.relative_to(self.root).parts[:-1]
            if any(part in self.exclude_dirs for part in rel_parts):
                continue
            if any(fnmatch.fnmatch(p.name, pat) for pat in self.include_globs):
                try:
                    if p.stat().st_size <= self.max_file_size:
                        yield p
                    elif self.verbose:
                        self.logger.info("Skipping %s: larger than %d bytes", p, self.max_file_size)
                except OSError as exc:
                    if self.verbose:
                        self.logger.warning("Unable to stat %s: %s", p, exc)
                    continue

    def scan(self) -> Report:
        files = list(self._iter_files())
        total_files = len(files)

        if self.verbose:
            self.logger.info("Discovered %d file(s) to scan", total_files)

        if not total_files:
            return merge_reports([])

        progress_bar = None
        if self.show_progress:
            progress_bar = tqdm(total=total_files, desc=self.progress_desc, unit="file")

        reports: Dict[Path, Report] = {}
        executor = ThreadPoolExecutor(max_workers=self.workers)
        try:
            self._progress_bar = progress_bar
            futures = {executor.submit(self._scan_file, path): path for path in files}
            for future in as_completed(futures):
                path = futures[future]
                try:
                    report = future.result()
                    if report is not None:
                        reports[path] = report
                except Exception as exc:
                    if self.verbose:
                        self.logger.exception("Error scanning %s", path)
                    else:
                        self.logger.warning("Error scanning %s: %s", path, exc)
                finally:
                    if progress_bar is not None:
                        progress_bar.update(1)
        except KeyboardInterrupt:
            if self.verbose:
                self.logger.info("Scan interrupted by user; shutting down workers")
            raise
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
            if progress_bar is not None:
                progress_bar.close()
            self._progress_bar = None

        # completion order is arbitrary; merge in path order
        return merge_reports(reports[p] for p in files if p in reports)

    def _scan_file(self, path: Path) -> Optional[Report]:
        display_path = self._format_display_path(path)
        self._update_current_file_display(display_path)
        start_time = time.perf_counter()
        try:
            return scan_path(
                path,
                self.catalog,
                display_path=display_path,
                budget=self.budget,
                logger=self.logger,
            )
        finally:
            self._maybe_log_slow_file(display_path, time.perf_counter() - start_time)

    def _format_display_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)

    def _update_current_file_display(self, display_path: str) -> None:
        label = display_path
        if len(label) > 60:
            label = f"...{label[-57:]}"
        if self._progress_bar is not None:
            with self._progress_lock:
                self._progress_bar.set_postfix_str(label, refresh=False)
                self._progress_bar.refresh()
        if self.verbose:
            self.logger.info("Processing %s", display_path)

    def _maybe_log_slow_file(self, display_path: str, duration: float) -> None:
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        if duration < self._slow_log_threshold:
            return
        self.logger.debug(
            "Slow scan for %s took %.2fs (rules=%d)",
            display_path,
            duration,
            self.catalog.rule_count,
        )


class SingleFileScanner:
    def __init__(
        self,
        file_path: Path,
        catalog: Catalog,
        *,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        budget: Optional[MatchBudget] = None,
        logger: Optional[logging.Logger] = None,
        verbose: bool = False,
    ) -> None:
        self.file_path = file_path
        self.catalog = catalog
        self.max_file_size = max_file_size
        self.budget = budget
        base_logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self.logger = base_logger.getChild(self.__class__.__name__.lower())
        self.verbose = verbose
        if verbose:
            self.logger.setLevel(logging.INFO)

    def scan(self) -> Report:
        if self.verbose:
            self.logger.info("Processing %s", self.file_path)
        try:
            size = self.file_path.stat().st_size
        except OSError as exc:
            self.logger.warning("Unable to stat %s: %s", self.file_path, exc)
            return merge_reports([])
        if size > self.max_file_size:
            self.logger.warning(
                "Skipping %s: %d bytes exceeds the %d byte limit", self.file_path, size, self.max_file_size
            )
            return merge_reports([])
        report = scan_path(self.file_path, self.catalog, budget=self.budget, logger=self.logger)
        if report is None:
            return merge_reports([])
        return report
