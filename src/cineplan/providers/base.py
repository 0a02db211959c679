# src/cineplan/providers/base.py

from abc import ABC, abstractmethod
from typing import List
from cineplan.core.models import ShowtimeQuery, Movie


class ShowtimeProvider(ABC):

    @abstractmethod
    def fetch_movies(self, query: ShowtimeQuery) -> List[Movie]:
        ...
