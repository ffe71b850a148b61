"""
Tile management module for the photo mosaic package.

This module holds the image library used to fill mosaic tiles. A TileLibrary
is loaded once and never changes; every mosaic run takes its own TilePool
snapshot from it and consumes entries from that pool, so repeated runs
against the same library are independent of each other.

Classes:
    LibraryEntry: One library image with its precomputed colours
    TileLibrary: Immutable, ordered collection of library entries
    TilePool: Consumable per-run view of a library with nearest-match lookup
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .color_difference import delta_e2000
from .color_space import rgb255_to_lab
from .config import DEFAULT_REFERENCE_WHITE, validate_reference_white
from .exceptions import InternalInvariantError
from .image_processor import average_color, find_image_files, load_image
from .utils import validate_image, logger


@dataclass(frozen=True, eq=False)
class LibraryEntry:
    """
    A library image together with its average colour.

    The colours are computed once when the entry is created and never
    change afterwards. Entries compare by identity, so two files with the
    same content remain distinct candidates.

    Attributes:
        index: Position of the entry in its library's load order
        image: Image pixels (H, W, 3) uint8
        avg_color: Average RGB colour (3,) in range [0, 255]
        lab: Average colour in CIE L*a*b* (3,)
        path: File the image was read from, if any
    """
    index: int
    image: np.ndarray = field(repr=False)
    avg_color: np.ndarray = field(repr=False)
    lab: np.ndarray = field(repr=False)
    path: Optional[Path] = None

    @classmethod
    def from_image(cls,
                   index: int,
                   image: np.ndarray,
                   reference_white: Sequence[float] = DEFAULT_REFERENCE_WHITE,
                   path: Optional[Path] = None) -> "LibraryEntry":
        """
        Create an entry and compute its colours.

        Args:
            index: Position in the library
            image: (H, W, 3) uint8 pixel array
            reference_white: Illuminant used for the Lab conversion
            path: Optional source file

        Returns:
            LibraryEntry: The new entry
        """
        validate_image(image)
        image = np.array(image, dtype=np.uint8)
        image.setflags(write=False)

        avg = average_color(image)
        lab = rgb255_to_lab(avg, reference_white)
        avg.setflags(write=False)
        lab.setflags(write=False)

        return cls(index=index, image=image, avg_color=avg, lab=lab, path=path)

    @property
    def name(self) -> str:
        return self.path.name if self.path is not None else f"entry-{self.index}"

    @property
    def size(self) -> Tuple[int, int]:
        """Image size as (width, height)."""
        return self.image.shape[1], self.image.shape[0]


class TileLibrary:
    """
    Immutable collection of candidate images for mosaic tiles.

    The library is built once for a given reference white; every entry's
    average colour and Lab colour is computed at load time. Mosaic runs never
    modify the library, they work on snapshots obtained from snapshot().

    Attributes:
        entries: Library entries in load order
        reference_white: Illuminant used for the Lab colours

    Example:
        >>> library = TileLibrary.from_directory("library/")
        >>> print(f"Loaded {len(library)} images")
        Loaded 1000 images
        >>> pool = library.snapshot()
        >>> entry, distance = pool.claim([53.2, 80.1, 67.2])
    """

    def __init__(self,
                 entries: Iterable[LibraryEntry],
                 reference_white: Sequence[float] = DEFAULT_REFERENCE_WHITE):
        self.reference_white = validate_reference_white(reference_white)
        self.entries: Tuple[LibraryEntry, ...] = tuple(entries)

        if self.entries:
            self._labs = np.stack([entry.lab for entry in self.entries])
        else:
            self._labs = np.empty((0, 3), dtype=np.float64)
        self._labs.setflags(write=False)

    @classmethod
    def from_images(cls,
                    images: Iterable[np.ndarray],
                    reference_white: Sequence[float] = DEFAULT_REFERENCE_WHITE) -> "TileLibrary":
        """
        Build a library from in-memory images.

        Args:
            images: (H, W, 3) uint8 arrays in library order
            reference_white: Illuminant used for the Lab conversion

        Returns:
            TileLibrary: The library
        """
        white = validate_reference_white(reference_white)
        entries = [
            LibraryEntry.from_image(idx, image, white)
            for idx, image in enumerate(images)
        ]
        return cls(entries, white)

    @classmethod
    def from_directory(cls,
                       directory: Union[str, Path],
                       reference_white: Sequence[float] = DEFAULT_REFERENCE_WHITE) -> "TileLibrary":
        """
        Load every readable image below a directory.

        Sub-directories are searched as well. Files that cannot be decoded
        are reported with a warning and left out of the library.

        Args:
            directory: Root directory of the image library
            reference_white: Illuminant used for the Lab conversion

        Returns:
            TileLibrary: The library

        Raises:
            FileNotFoundError: If the directory does not exist
            ValueError: If no image in the directory could be read
        """
        white = validate_reference_white(reference_white)
        logger.info(f"Loading image library from {directory}")

        entries: List[LibraryEntry] = []
        skipped = 0

        for path in find_image_files(directory):
            try:
                image = load_image(path)
            except ValueError as e:
                logger.warning(f"Skipping unreadable library file {path}: {e}")
                skipped += 1
                continue

            entries.append(LibraryEntry.from_image(len(entries), image, white, path))

        if not entries:
            raise ValueError(f"No readable images found in {directory}")

        logger.info(f"Loaded {len(entries)} library images ({skipped} skipped)")
        return cls(entries, white)

    def snapshot(self) -> "TilePool":
        """Return a fresh consumable pool containing every library entry."""
        return TilePool(self.entries, self._labs, self.reference_white)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[LibraryEntry]:
        return iter(self.entries)

    def __getitem__(self, idx: int) -> LibraryEntry:
        return self.entries[idx]

    def to_dataframe(self) -> pd.DataFrame:
        """
        Tabulate the library: one row per entry with its colours.

        Returns:
            pd.DataFrame: Columns index, filename, width, height,
            average-red/green/blue, L, a, b and chroma
        """
        rows = []
        for entry in self.entries:
            r, g, b = entry.avg_color
            width, height = entry.size
            rows.append({
                "index": entry.index,
                "filename": entry.name,
                "width": width,
                "height": height,
                "average-red": r,
                "average-green": g,
                "average-blue": b,
                "L": entry.lab[0],
                "a": entry.lab[1],
                "b": entry.lab[2],
                "chroma": float(np.hypot(entry.lab[1], entry.lab[2])),
            })

        return pd.DataFrame(rows, columns=[
            "index", "filename", "width", "height",
            "average-red", "average-green", "average-blue",
            "L", "a", "b", "chroma",
        ])

    def get_statistics(self) -> Dict:
        """
        Get statistics about the library.

        Returns:
            Dict: Entry count and reference white; for a non-empty library
            also the lightness range and mean, the mean chroma and the
            smallest image side (the largest tile that needs no upscaling)
        """
        df = self.to_dataframe()
        stats = {
            'total_images': len(self.entries),
            'reference_white': self.reference_white,
        }

        if self.entries:
            stats['min_side'] = int(df[['width', 'height']].min().min())
            stats['lightness_range'] = (float(df['L'].min()), float(df['L'].max()))
            stats['mean_lightness'] = float(df['L'].mean())
            stats['mean_chroma'] = float(df['chroma'].mean())

        return stats


class TilePool:
    """
    Consumable set of library entries for one mosaic run.

    Entries are kept in library order. nearest() scans every remaining entry
    and returns the one with the smallest CIEDE2000 difference, taking the
    first one in pool order when several are equally close. Removed entries
    never come back.

    The pool's Lab colours belong to one reference white. A run under a
    different white calls use_reference_white() first, which recomputes them
    from the entries' average RGB colours.

    claim() performs nearest() and remove() as one step under a lock, which
    is the only operation that needs to be atomic should tiles ever be
    matched from several threads.
    """

    def __init__(self,
                 entries: Sequence[LibraryEntry],
                 labs: np.ndarray,
                 reference_white: Sequence[float] = DEFAULT_REFERENCE_WHITE):
        if len(entries) != len(labs):
            raise ValueError(
                f"Got {len(entries)} entries but {len(labs)} Lab colours"
            )
        self._entries: List[LibraryEntry] = list(entries)
        self._labs = np.array(labs, dtype=np.float64).reshape(-1, 3)
        self._white = validate_reference_white(reference_white)
        self._lock = Lock()

    @property
    def reference_white(self) -> Tuple[float, float, float]:
        return self._white

    def use_reference_white(self, reference_white: Sequence[float]) -> None:
        """
        Express the remaining entries' colours under another reference white.

        Args:
            reference_white: Illuminant the query colours are computed with
        """
        white = validate_reference_white(reference_white)

        with self._lock:
            if white == self._white:
                return

            logger.debug(
                f"Converting {len(self._entries)} pool colours from white "
                f"{self._white} to {white}"
            )
            if self._entries:
                avg_colors = np.stack([entry.avg_color for entry in self._entries])
                self._labs = rgb255_to_lab(avg_colors, white)
            self._white = white

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry: LibraryEntry) -> bool:
        return any(candidate is entry for candidate in self._entries)

    def __iter__(self) -> Iterator[LibraryEntry]:
        return iter(list(self._entries))

    def _nearest_position(self, query_lab) -> Tuple[int, float]:
        if not self._entries:
            raise InternalInvariantError("nearest() called on an empty tile pool")

        distances = np.atleast_1d(delta_e2000(query_lab, self._labs))
        # argmin returns the first minimum, i.e. the earliest entry in pool order
        position = int(np.argmin(distances))
        return position, float(distances[position])

    def nearest(self, query_lab) -> LibraryEntry:
        """
        Find the remaining entry whose colour is closest to query_lab.

        Args:
            query_lab: Lab colour (3,)

        Returns:
            LibraryEntry: Closest entry (the pool is not modified)

        Raises:
            InternalInvariantError: If the pool is empty
        """
        position, _ = self._nearest_position(query_lab)
        return self._entries[position]

    def _position_of(self, entry: LibraryEntry) -> int:
        for position, candidate in enumerate(self._entries):
            if candidate is entry:
                return position
        raise KeyError(f"{entry!r} is not in the pool")

    def _pop(self, position: int) -> LibraryEntry:
        entry = self._entries.pop(position)
        self._labs = np.delete(self._labs, position, axis=0)
        return entry

    def remove(self, entry: LibraryEntry) -> None:
        """
        Remove an entry from the pool.

        Args:
            entry: Entry to remove, matched by identity

        Raises:
            KeyError: If the entry is not in the pool
        """
        with self._lock:
            self._pop(self._position_of(entry))

    def claim(self, query_lab) -> Tuple[LibraryEntry, float]:
        """
        Atomically find the closest entry and remove it from the pool.

        Args:
            query_lab: Lab colour (3,)

        Returns:
            Tuple[LibraryEntry, float]: The claimed entry and its CIEDE2000
            difference to query_lab

        Raises:
            InternalInvariantError: If the pool is empty
        """
        with self._lock:
            position, distance = self._nearest_position(query_lab)
            return self._pop(position), distance
