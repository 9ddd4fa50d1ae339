"""Cache category definitions for ntcleaner."""

from ntcleaner.models import CacheCategory, Category, RiskLevel

# All cache categories, keyed by id, in enumeration order
CATEGORIES: dict[CacheCategory, Category] = {
    CacheCategory.VIDEO: Category(
        id=CacheCategory.VIDEO,
        name="Videos",
        risk_level=RiskLevel.REVIEW,
        location="Video/<yyyy-mm>/Ori",
        description="Received and sent video files, grouped by month",
    ),
    CacheCategory.VIDEO_THUMB: Category(
        id=CacheCategory.VIDEO_THUMB,
        name="Video Thumbnails",
        risk_level=RiskLevel.SAFE,
        location="Video/<yyyy-mm>/Thumb, ThumbTemp",
        description="Preview frames generated for videos",
    ),
    CacheCategory.PTT: Category(
        id=CacheCategory.PTT,
        name="Voice Messages",
        risk_level=RiskLevel.REVIEW,
        location="Ptt/<yyyy-mm>/Ori, OriTemp",
        description="Push-to-talk voice clips, grouped by month",
    ),
    CacheCategory.PIC: Category(
        id=CacheCategory.PIC,
        name="Images",
        risk_level=RiskLevel.REVIEW,
        location="Pic/<yyyy-mm>/Ori",
        description="Received and sent images, grouped by month",
    ),
    CacheCategory.FILE: Category(
        id=CacheCategory.FILE,
        name="Files",
        risk_level=RiskLevel.REVIEW,
        location="File/Ori, Thumb, ThumbTemp",
        description="Transferred files and their thumbnails",
    ),
    CacheCategory.LOG: Category(
        id=CacheCategory.LOG,
        name="Client Logs",
        risk_level=RiskLevel.SAFE,
        location="log",
        description="Client runtime logs",
    ),
    CacheCategory.LOG_CACHE: Category(
        id=CacheCategory.LOG_CACHE,
        name="Log Cache",
        risk_level=RiskLevel.SAFE,
        location="log-cache",
        description="Buffered log segments waiting for upload",
    ),
    CacheCategory.NT_TEMP: Category(
        id=CacheCategory.NT_TEMP,
        name="NT Temp",
        risk_level=RiskLevel.SAFE,
        location="../nt_temp",
        description="Kernel scratch files next to the account data",
        linux_only=True,
    ),
    CacheCategory.NAPCAT_DATA: Category(
        id=CacheCategory.NAPCAT_DATA,
        name="NapCat Data",
        risk_level=RiskLevel.RISKY,
        location="<base>/NapCat/data",
        description="Framework data shared by all accounts (disabled by default)",
    ),
    CacheCategory.NAPCAT_TEMP: Category(
        id=CacheCategory.NAPCAT_TEMP,
        name="NapCat Temp",
        risk_level=RiskLevel.SAFE,
        location="<base>/NapCat/temp",
        description="Framework temporary downloads shared by all accounts",
    ),
}


def get_category(category_id: str) -> Category | None:
    """Get a category by ID."""
    try:
        return CATEGORIES.get(CacheCategory(category_id))
    except ValueError:
        return None


def get_all_categories() -> list[Category]:
    """Get all categories."""
    return list(CATEGORIES.values())


def get_categories_by_risk(risk_level: RiskLevel) -> list[Category]:
    """Get all categories with the given risk level."""
    return [c for c in CATEGORIES.values() if c.risk_level == risk_level]
