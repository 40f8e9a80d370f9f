"""
Matérialisation des commandes vendeur.

Pour chaque part (dans l'ordre de partition):
1) crée la commande (compensation: suppression)
2) réserve le stock de ses lignes par décrément conditionnel (compensation: restitution)
Au premier échec, s'arrête sans traiter les vendeurs suivants et lève
PersistencePartialFailure (ou StockConflictError si une réservation est refusée)
en portant les ids déjà créés; la compensation est à la charge de l'appelant (saga).
"""
from typing import List, Optional
import logging

from marketplace import config
from marketplace.checkout.context import CheckoutContext
from marketplace.checkout.errors import DuplicateOrderError, PersistencePartialFailure, StockConflictError
from marketplace.checkout.saga import Saga
from marketplace.orders import repository
from marketplace.orders.models import OrderLine, SellerShare, build_order_document

logger = logging.getLogger(__name__)

def _create(doc: dict) -> dict:
    row = repository.create_order(doc)
    if not row or not row.get("id"):
        raise RuntimeError(f"order store returned no row for seller_id={doc.get('seller_id')}")
    return row

def _reserve(line: OrderLine) -> OrderLine:
    if not repository.reserve_stock(line.product_id, line.variant_id, line.quantity):
        label = line.product_name + (f" ({line.variant_id})" if line.variant_id else "")
        raise StockConflictError(
            f"Stock issues: {label} is no longer available in the requested quantity",
            stock_errors=[f"{label}: Requested {line.quantity}"],
        )
    return line

def _release(line: OrderLine) -> bool:
    return repository.release_stock(line.product_id, line.variant_id, line.quantity)

def _delete(row: dict) -> bool:
    return repository.delete_order(str(row["id"]))

def materialize_orders(
    shares: List[SellerShare],
    ctx: CheckoutContext,
    saga: Saga,
    *,
    reserve_stock: Optional[bool] = None,
) -> List[str]:
    """
    Crée une commande par part vendeur et retourne la liste ordonnée des ids créés.
    En succès, cette liste contient exactement une commande par vendeur de la partition.
    """
    reserve = config.STOCK_RESERVATION_ENABLED if reserve_stock is None else reserve_stock
    created_ids: List[str] = []

    for share in shares:
        doc = build_order_document(share, ctx)
        try:
            row = saga.step(lambda: _create(doc), _delete, label=f"order:{share.seller_id}")
        except DuplicateOrderError:
            raise
        except Exception as e:
            logger.error(
                "orders.materializer create failed seller_id=%s created=%s %s",
                share.seller_id, created_ids, ctx.log_fields(),
            )
            raise PersistencePartialFailure(created_ids=created_ids, context={"seller_id": share.seller_id}) from e
        created_ids.append(str(row["id"]))

        if not reserve:
            continue
        for line in share.items:
            try:
                saga.step(lambda: _reserve(line), _release, label=f"stock:{line.product_id}:{line.variant_id or '-'}")
            except StockConflictError as e:
                e.context.update({"seller_id": share.seller_id, "created_ids": list(created_ids)})
                raise
            except Exception as e:
                logger.error(
                    "orders.materializer stock reservation failed product_id=%s %s",
                    line.product_id, ctx.log_fields(),
                )
                raise PersistencePartialFailure(created_ids=created_ids, context={"seller_id": share.seller_id}) from e

    logger.info("orders.materializer created=%s %s", len(created_ids), ctx.log_fields())
    return created_ids
