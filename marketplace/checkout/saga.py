"""
Saga de checkout: actions engagées + compensations associées.

Il n'y a pas de transaction multi-documents côté store: chaque création est
engagée unitairement et, en cas d'échec ultérieur, annulée par sa compensation.
La compensation est "best-effort": un échec est journalisé et n'empêche pas
les compensations suivantes. Les orphelins restants sont réconciliés hors bande.
"""
from typing import Any, Callable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

Compensation = Callable[[Any], Any]


class Saga:
    def __init__(self, name: str):
        self.name = name
        self._committed: List[Tuple[str, Any, Optional[Compensation]]] = []
        self.compensated = False

    @property
    def committed_labels(self) -> List[str]:
        return [label for label, _, _ in self._committed]

    def step(self, action: Callable[[], Any], compensate: Optional[Compensation] = None, *, label: str = "") -> Any:
        """
        Exécute action(); si elle réussit, enregistre (valeur, compensation).
        Une exception de l'action remonte telle quelle: rien n'est enregistré.
        """
        value = action()
        self._committed.append((label or f"step-{len(self._committed) + 1}", value, compensate))
        return value

    def compensate(self) -> Tuple[int, int]:
        """Exécute les compensations en ordre inverse. Retourne (exécutées, échouées)."""
        run = 0
        failed = 0
        for label, value, comp in reversed(self._committed):
            if comp is None:
                continue
            try:
                outcome = comp(value)
            except Exception:
                failed += 1
                logger.exception("checkout.saga compensation failed saga=%s step=%s", self.name, label)
                continue
            if outcome is False:
                failed += 1
                logger.error("checkout.saga compensation refused saga=%s step=%s", self.name, label)
            else:
                run += 1
        self._committed.clear()
        self.compensated = True
        if failed:
            logger.error("checkout.saga rollback incomplete saga=%s run=%s failed=%s", self.name, run, failed)
        else:
            logger.info("checkout.saga rollback complete saga=%s run=%s", self.name, run)
        return run, failed
