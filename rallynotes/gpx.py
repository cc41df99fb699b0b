"""GPX route loading."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Union

from .models import RoutePoint

logger = logging.getLogger('rallynotes.gpx')

GPX_NAMESPACE = {'gpx': 'http://www.topografix.com/GPX/1/1'}


class GPXRouteLoader:
    """Load route points, with elevation where present, from a GPX file."""

    def __init__(self, gpx_path: Union[str, Path]):
        """
        Initialise GPX route loader.

        Args:
            gpx_path: Path to GPX file
        """
        self.gpx_path = Path(gpx_path)

    def load(self) -> List[RoutePoint]:
        """Load the GPX file. Returns the route points ([] on failure)."""
        points = self._parse_gpx()
        if points:
            logger.info("Loaded %d points from %s", len(points), self.gpx_path)
        return points

    def _parse_gpx(self) -> List[RoutePoint]:
        """Parse track points, falling back to route points, then bare tags."""
        try:
            root = ET.parse(self.gpx_path).getroot()
        except ET.ParseError as e:
            logger.warning("Error parsing GPX file %s: %s", self.gpx_path, e)
            return []
        except OSError as e:
            logger.warning("Error reading GPX file %s: %s", self.gpx_path, e)
            return []

        searches = (
            ('.//gpx:trkpt', GPX_NAMESPACE),
            ('.//gpx:rtept', GPX_NAMESPACE),
            ('.//trkpt', None),
            ('.//rtept', None),
        )
        for path, ns in searches:
            elements = root.findall(path, ns) if ns else root.findall(path)
            if not elements:
                continue
            try:
                return [self._read_point(el, ns) for el in elements]
            except (TypeError, ValueError) as e:
                logger.warning("Malformed point in %s: %s", self.gpx_path, e)
                return []

        logger.warning("No track or route points in %s", self.gpx_path)
        return []

    @staticmethod
    def _read_point(element: ET.Element, ns: Optional[dict]) -> RoutePoint:
        lat = float(element.get('lat'))
        lon = float(element.get('lon'))
        ele = element.find('gpx:ele', ns) if ns else element.find('ele')
        elevation = float(ele.text) if ele is not None and ele.text else None
        return RoutePoint(lat=lat, lon=lon, elevation=elevation)
