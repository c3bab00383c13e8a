"""Response schemas of the PokeAPI endpoints the browser reads."""

from typing import List, Optional

from pydantic import BaseModel, Field


class NamedResource(BaseModel):
    name: str
    url: str


class TypeListResponse(BaseModel):
    results: List[NamedResource]


class TypeMember(BaseModel):
    pokemon: NamedResource


class TypeDetailResponse(BaseModel):
    pokemon: List[TypeMember]


class PokemonListResponse(BaseModel):
    results: List[NamedResource]
    count: int


class OfficialArtwork(BaseModel):
    front_default: Optional[str]


class OtherSprites(BaseModel):
    official_artwork: OfficialArtwork = Field(alias="official-artwork")


class Sprites(BaseModel):
    other: OtherSprites


class TypeSlot(BaseModel):
    type: NamedResource


class PokemonDetailResponse(BaseModel):
    sprites: Sprites
    types: List[TypeSlot]
