"""Static catalogue of bookable-on-enquiry activities."""

from dataclasses import dataclass, asdict, field
from typing import Any, Optional


@dataclass(frozen=True)
class Activity:
    id: str
    title: str
    description: str
    long_description: str
    price: str
    duration: str
    image_url: str
    includes: list[str] = field(default_factory=list)
    highlights: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


ACTIVITIES: tuple[Activity, ...] = (
    Activity(
        id="chopper-ride",
        title="Chopper Ride",
        description="A short helicopter flight over the valley.",
        long_description=(
            "A thirty minute flight over Dal Lake, the Mughal Gardens and the "
            "surrounding ranges, with an experienced pilot and time for photographs."
        ),
        price="29,900",
        duration="30 minutes",
        image_url="https://images.unsplash.com/photo-1487252665478-49b61b47f302?auto=format&fit=crop&q=80&w=800&h=450",
        includes=["Professional pilot", "Safety briefing", "Hotel pickup and drop-off"],
        highlights=["Aerial views of Dal Lake", "Panoramic mountain views"],
    ),
    Activity(
        id="shikara-ride",
        title="Shikara Ride",
        description="A slow ride across the lake on a traditional Shikara.",
        long_description=(
            "Two hours on the lake past floating gardens, markets and houseboats, "
            "guided by a local oarsman."
        ),
        price="19,900",
        duration="2 hours",
        image_url="https://images.unsplash.com/photo-1500375592092-40eb2168fd21?auto=format&fit=crop&q=80&w=800&h=450",
        includes=["Shikara oarsman", "Refreshments", "Photo stops"],
        highlights=["Floating gardens", "Sunset over the lake"],
    ),
    Activity(
        id="offroad-adventure",
        title="Offroad Adventure",
        description="A guided 4x4 day on mountain trails.",
        long_description=(
            "A full day in equipped 4x4 vehicles on mountain trails and river "
            "crossings, ending at viewpoints ordinary cars cannot reach."
        ),
        price="49,900",
        duration="Full day",
        image_url="https://images.unsplash.com/photo-1615729947596-a598e5de0ab3?auto=format&fit=crop&q=80&w=800&h=450",
        includes=["4x4 vehicle", "Guide", "Lunch", "Safety equipment"],
        highlights=["Mountain trails", "River crossings", "Hidden viewpoints"],
    ),
    Activity(
        id="rafting",
        title="Rafting",
        description="White-water rafting on a mountain river.",
        long_description=(
            "Rafting sections for beginners and experienced paddlers, with trained "
            "instructors, equipment and transport to the launch point."
        ),
        price="39,900",
        duration="3-4 hours",
        image_url="https://images.unsplash.com/photo-1501854140801-50d01698950b?auto=format&fit=crop&q=80&w=800&h=450",
        includes=["Guides", "Safety equipment", "Training session", "Transport"],
        highlights=["Rapids", "Gorge scenery"],
    ),
    Activity(
        id="paragliding",
        title="Paragliding",
        description="Tandem paragliding over the valley.",
        long_description=(
            "Tandem flights with certified pilots from mountain launch points. "
            "No prior experience is needed."
        ),
        price="34,900",
        duration="1-2 hours",
        image_url="https://images.unsplash.com/photo-1482938289607-e9573fc25ebb?auto=format&fit=crop&q=80&w=800&h=450",
        includes=["Tandem pilot", "Equipment", "Transport to launch site"],
        highlights=["Views over the valley", "Free flight"],
    ),
)


def list_activities() -> list[Activity]:
    return list(ACTIVITIES)


def get_activity(activity_id: str) -> Optional[Activity]:
    return next((a for a in ACTIVITIES if a.id == activity_id), None)
