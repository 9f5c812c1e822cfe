"""
계정 병합 엔진

중복 입력된 두 계정의 전표 이력을 하나로 합침.

순서:
1. 검증 (동일 계정, 존재 여부, 활성 여부, 같은 회사)
2. source의 모든 전표를 target으로 재지정 (vehicle_id만 변경)
3. source 계정 삭제
2~3은 하나의 원자 단위 (실패 시 전표 재지정/삭제 모두 롤백)

병합은 되돌릴 수 없음 (전표에 원래 계정 id가 남지 않음).
호출자가 실행 전에 사용자 확인을 받아야 함.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.ledger.errors import InvalidMerge, MergeFailed, TransactionFailed
from core.ledger.models import Vehicle

if TYPE_CHECKING:
    from adapters.interfaces import ILedgerStore

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """병합 결과"""

    source_vehicle_id: int
    target_vehicle_id: int
    moved_vouchers: int
    already_merged: bool = False  # 재실행 시 source가 이미 없었음


class MergeEngine:
    """계정 병합 엔진

    Args:
        store: 원장 저장소
    """

    def __init__(self, store: ILedgerStore):
        self.store = store

    def _check_active(self, vehicle: Vehicle | None, role: str, vehicle_id: int) -> Vehicle:
        if vehicle is None:
            raise InvalidMerge(f"{role} vehicle {vehicle_id} does not exist")
        if not vehicle.is_active:
            raise InvalidMerge(f"{role} vehicle {vehicle_id} is inactive")
        return vehicle

    async def merge(
        self,
        source_vehicle_id: int,
        target_vehicle_id: int,
        allow_already_merged: bool = True,
    ) -> MergeResult:
        """source 계정을 target 계정으로 병합

        재실행 안전성: source가 이미 없고 target이 유효하면
        (allow_already_merged=True일 때) 이전 병합이 완료된 것으로 보고 성공 처리.

        Args:
            source_vehicle_id: 삭제될 계정
            target_vehicle_id: 전표를 받을 계정
            allow_already_merged: source 부재를 완료된 병합으로 간주할지 여부

        Returns:
            MergeResult

        Raises:
            InvalidMerge: 검증 실패 (아무것도 변경되지 않음)
            MergeFailed: 원자 단위 실패 (전체 롤백됨)
        """
        if source_vehicle_id == target_vehicle_id:
            raise InvalidMerge("source and target vehicle are the same")

        target = self._check_active(
            await self.store.get_vehicle(target_vehicle_id), "target", target_vehicle_id
        )

        source_row = await self.store.get_vehicle(source_vehicle_id)
        if source_row is None and allow_already_merged:
            logger.warning(
                f"병합 재실행: source {source_vehicle_id} 없음, 완료된 병합으로 처리",
                extra={"target_vehicle_id": target_vehicle_id},
            )
            return MergeResult(
                source_vehicle_id=source_vehicle_id,
                target_vehicle_id=target_vehicle_id,
                moved_vouchers=0,
                already_merged=True,
            )

        source = self._check_active(source_row, "source", source_vehicle_id)

        if source.company_id != target.company_id:
            raise InvalidMerge("source and target vehicle belong to different companies")

        async def _repoint_and_delete() -> int:
            moved = await self.store.bulk_reassign_voucher_vehicle(
                source_vehicle_id, target_vehicle_id
            )
            if not await self.store.delete_vehicle(source_vehicle_id):
                raise MergeFailed(f"source vehicle {source_vehicle_id} could not be deleted")
            return moved

        try:
            moved = await self.store.run_atomic(_repoint_and_delete)
        except MergeFailed:
            logger.error(
                f"계정 병합 실패 (롤백됨): {source.number} → {target.number}"
            )
            raise
        except TransactionFailed as e:
            logger.error(
                f"계정 병합 실패 (롤백됨): {source.number} → {target.number}: {e}"
            )
            raise MergeFailed(str(e)) from e

        logger.info(
            f"계정 병합 완료: {source.number} → {target.number} ({moved}건 이동)",
            extra={
                "source_vehicle_id": source_vehicle_id,
                "target_vehicle_id": target_vehicle_id,
            },
        )

        return MergeResult(
            source_vehicle_id=source_vehicle_id,
            target_vehicle_id=target_vehicle_id,
            moved_vouchers=moved,
        )
