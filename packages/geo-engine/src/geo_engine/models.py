from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (-90 <= self.lat <= 90):
            raise ValueError(f"latitude out of range: {self.lat}")
        if not (-180 <= self.lng <= 180):
            raise ValueError(f"longitude out of range: {self.lng}")
