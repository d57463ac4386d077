"""
Governorate Service - Syrian governorate lookup.

Resolves ids, names, free-text queries and coordinates to one of the 14
Syrian governorates. Distances are straight lines in raw degree space, which
is accurate enough to rank 14 centroids.
"""

import logging
import math
from typing import Optional

from nawartu.models import Governorate

logger = logging.getLogger('Nawartu')


SYRIAN_GOVERNORATES: tuple[Governorate, ...] = (
    Governorate(
        id="damascus", name_ar="دمشق", name_en="Damascus",
        latitude=33.5138, longitude=36.2765, region="central", population=2079000,
        major_cities=("دمشق", "دمشق القديمة", "المالكي", "أبو رمانة", "الزاهرة"),
    ),
    Governorate(
        id="aleppo", name_ar="حلب", name_en="Aleppo",
        latitude=36.2021, longitude=37.1343, region="north", population=1850000,
        major_cities=("حلب", "عين العرب", "عفرين", "الباب", "منبج"),
    ),
    Governorate(
        id="homs", name_ar="حمص", name_en="Homs",
        latitude=34.7394, longitude=36.7163, region="central", population=775000,
        major_cities=("حمص", "تدمر", "القصير", "تلكلخ", "الرستن"),
    ),
    Governorate(
        id="hamah", name_ar="حماة", name_en="Hama",
        latitude=35.1519, longitude=36.7500, region="central", population=467000,
        major_cities=("حماة", "مصياف", "محردة", "سلمية", "اللطامنة"),
    ),
    Governorate(
        id="latakia", name_ar="اللاذقية", name_en="Latakia",
        latitude=35.5376, longitude=35.7800, region="west", population=400000,
        major_cities=("اللاذقية", "جبلة", "الحفة", "القرداحة", "القدموس"),
    ),
    Governorate(
        id="tartus", name_ar="طرطوس", name_en="Tartus",
        latitude=34.8899, longitude=35.8847, region="west", population=115000,
        major_cities=("طرطوس", "بانياس", "الشيخ بدر", "صافيتا", "دركوش"),
    ),
    Governorate(
        id="idlib", name_ar="إدلب", name_en="Idlib",
        latitude=35.9306, longitude=36.6339, region="north", population=1650000,
        major_cities=("إدلب", "معرة النعمان", "أريحا", "جسر الشغور", "حارم"),
    ),
    Governorate(
        id="raqqa", name_ar="الرقة", name_en="Raqqa",
        latitude=35.9500, longitude=39.0167, region="east", population=944000,
        major_cities=("الرقة", "تل أبيض", "عين عيسى", "الثورة", "المسكنة"),
    ),
    Governorate(
        id="deir-ez-zor", name_ar="دير الزور", name_en="Deir ez-Zor",
        latitude=35.3333, longitude=40.1500, region="east", population=1200000,
        major_cities=("دير الزور", "البوكمال", "الميادين", "القورية", "أبو كمال"),
    ),
    Governorate(
        id="hasakah", name_ar="الحسكة", name_en="Hasakah",
        latitude=36.5000, longitude=40.7500, region="east", population=1500000,
        major_cities=("الحسكة", "القامشلي", "رأس العين", "مالكية", "شدادة"),
    ),
    Governorate(
        id="quneitra", name_ar="القنيطرة", name_en="Quneitra",
        latitude=33.1253, longitude=35.8236, region="south", population=87000,
        major_cities=("القنيطرة", "خان أرنبة", "عين قنية", "الرفيد", "عين التينة"),
    ),
    Governorate(
        id="daraa", name_ar="درعا", name_en="Daraa",
        latitude=32.6189, longitude=36.1021, region="south", population=998000,
        major_cities=("درعا", "نوى", "إزرع", "طفس", "الشيخ مسكين"),
    ),
    Governorate(
        id="as-suwayda", name_ar="السويداء", name_en="As-Suwayda",
        latitude=32.7000, longitude=36.5667, region="south", population=770000,
        major_cities=("السويداء", "صلخد", "شهبا", "بصرى الشام", "أم الرمان"),
    ),
    Governorate(
        id="rif-dimashq", name_ar="ريف دمشق", name_en="Rif Dimashq",
        latitude=33.5167, longitude=36.9500, region="central", population=2836000,
        major_cities=("دوما", "جرمانا", "الزبداني", "التل", "قطنا"),
    ),
)


class GovernorateService:
    """
    Lookups over the static governorate catalog.

    Every lookup is a linear scan in catalog order. No-match conditions
    return None or an empty list, never raise.
    """

    REGIONS = ["central", "north", "west", "east", "south"]

    GOVERNORATES = SYRIAN_GOVERNORATES

    _by_id: dict[str, Governorate] = {gov.id: gov for gov in SYRIAN_GOVERNORATES}

    @classmethod
    def by_id(cls, governorate_id: str) -> Optional[Governorate]:
        """Get a governorate by its id."""
        return cls._by_id.get(governorate_id)

    @classmethod
    def by_name(cls, query: str, lang: str = "ar") -> Optional[Governorate]:
        """
        Find the first governorate whose name in ``lang`` contains ``query``.

        Args:
            query: Free text, matched case-insensitively as a substring
            lang: 'ar' or 'en'

        Returns:
            Governorate or None if nothing matches
        """
        needle = query.strip().lower()
        if not needle:
            return None
        for gov in cls.GOVERNORATES:
            if needle in gov.name(lang).lower():
                return gov
        return None

    @classmethod
    def by_region(cls, region: str) -> list[Governorate]:
        """Get all governorates in a region, in catalog order."""
        return [gov for gov in cls.GOVERNORATES if gov.region == region]

    @classmethod
    def suggestions(cls, query: str, lang: str = "ar") -> list[Governorate]:
        """
        Suggest governorates for a search box.

        A blank query returns the whole catalog. Otherwise a governorate
        matches when the query is a substring of either of its names or of
        one of its major cities.

        Args:
            query: Free text typed by the user
            lang: Display language (matching always covers both languages)

        Returns:
            Matching governorates in catalog order, possibly empty
        """
        needle = query.strip().lower()
        if not needle:
            return list(cls.GOVERNORATES)

        return [
            gov for gov in cls.GOVERNORATES
            if needle in gov.name_ar.lower()
            or needle in gov.name_en.lower()
            or any(needle in city.lower() for city in gov.major_cities)
        ]

    @staticmethod
    def distance(lat: float, lng: float, gov: Governorate) -> float:
        """Straight-line distance in degrees between a point and a centroid."""
        return math.sqrt((lat - gov.latitude) ** 2 + (lng - gov.longitude) ** 2)

    @classmethod
    def nearest(cls, lat: float, lng: float) -> Governorate:
        """
        Get the governorate whose centroid is closest to a point.

        Ties go to the first governorate in catalog order.
        """
        nearest = cls.GOVERNORATES[0]
        min_distance = math.inf

        for gov in cls.GOVERNORATES:
            d = cls.distance(lat, lng, gov)
            if d < min_distance:
                min_distance = d
                nearest = gov

        logger.debug(f"Nearest governorate to ({lat}, {lng}): {nearest.id}")
        return nearest

    @classmethod
    def ordered_for_host(
        cls,
        lat: Optional[float] = None,
        lng: Optional[float] = None
    ) -> list[Governorate]:
        """
        Order the catalog for a host at the given coordinates.

        The nearest governorate comes first, followed by the rest sorted by
        ascending distance. Without coordinates the catalog order is kept.
        """
        if lat is None or lng is None:
            return list(cls.GOVERNORATES)

        nearest = cls.nearest(lat, lng)
        by_distance = sorted(cls.GOVERNORATES, key=lambda gov: cls.distance(lat, lng, gov))
        return [nearest] + [gov for gov in by_distance if gov.id != nearest.id]

    @staticmethod
    def display_name(governorate: Governorate, lang: str) -> str:
        """Name of a governorate in the requested language."""
        return governorate.name(lang)

    @classmethod
    def is_valid_governorate(cls, governorate_id: str) -> bool:
        """Check if an id belongs to the catalog."""
        return governorate_id in cls._by_id

    @classmethod
    def all_ids(cls) -> list[str]:
        """Ids of every governorate, in catalog order."""
        return [gov.id for gov in cls.GOVERNORATES]
