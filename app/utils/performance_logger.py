"""
Turn 처리 성능 측정 로거

아바타 채팅 한 턴의 단계별 처리 시간을 측정합니다.

측정 항목:
- LLM 응답 생성 시간
- 단계별 미디어 처리 시간 (TTS, ffmpeg 변환, rhubarb 립싱크, 인코딩)
- 전체 처리 시간

사용 방법:
1. perf_logger.start_session(turn_id)
2. perf_logger.start_timer(turn_id, 'event_name')
3. perf_logger.end_timer(turn_id, 'event_name', metadata)
4. perf_logger.end_session(turn_id)
"""

import logging
import time
from typing import Dict, List, Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class PerformanceEvent:
    """성능 측정 이벤트"""
    event_name: str
    timestamp: float
    duration_ms: Optional[float] = None
    metadata: Dict = field(default_factory=dict)


class PerformanceLogger:
    """백엔드 성능 측정 로거"""

    def __init__(self):
        self.sessions: Dict[str, List[PerformanceEvent]] = {}
        self.session_start_times: Dict[str, float] = {}
        self.timers: Dict[str, float] = {}

    def start_session(self, session_id: str):
        """새 세션 시작"""
        self.sessions[session_id] = []
        self.session_start_times[session_id] = time.time()
        logger.debug(f"📊 Performance session started: {session_id}")

    def start_timer(self, session_id: str, event_name: str):
        """이벤트 타이머 시작"""
        self.timers[f"{session_id}:{event_name}"] = time.time()

    def end_timer(
        self,
        session_id: str,
        event_name: str,
        metadata: Optional[Dict] = None
    ) -> Optional[float]:
        """
        이벤트 타이머 종료 및 기록

        Returns:
            측정된 시간 (ms)
        """
        start_time = self.timers.pop(f"{session_id}:{event_name}", None)

        if start_time is None:
            logger.warning(f"⚠️ Timer not found: {event_name}")
            return None

        duration_ms = (time.time() - start_time) * 1000
        self.record(session_id, event_name, duration_ms, metadata)
        return duration_ms

    def record(
        self,
        session_id: str,
        event_name: str,
        duration_ms: float,
        metadata: Optional[Dict] = None
    ):
        """이벤트 직접 기록 (타이머 없이)"""
        if session_id not in self.sessions:
            logger.warning(f"⚠️ Session not found: {session_id}")
            return

        event = PerformanceEvent(
            event_name=event_name,
            timestamp=time.time(),
            duration_ms=duration_ms,
            metadata=metadata or {}
        )
        self.sessions[session_id].append(event)
        logger.info(
            f"⏱️  {event_name}: {duration_ms:.2f}ms "
            f"{metadata if metadata else ''}"
        )

    def get_stats(self, session_id: str) -> Dict:
        """
        세션 통계 계산 (이벤트 이름별 count/avg/min/max)

        Returns:
            통계 데이터
        """
        if session_id not in self.sessions:
            return {"error": "Session not found"}

        grouped: Dict[str, List[float]] = {}
        for event in self.sessions[session_id]:
            if event.duration_ms is not None:
                grouped.setdefault(event.event_name, []).append(event.duration_ms)

        session_start = self.session_start_times.get(session_id, 0)
        session_duration = (time.time() - session_start) * 1000 if session_start else 0

        return {
            "session_id": session_id,
            "session_duration": session_duration,
            "total_events": len(self.sessions[session_id]),
            "events": {
                name: {
                    "count": len(durations),
                    "avg": sum(durations) / len(durations),
                    "min": min(durations),
                    "max": max(durations)
                }
                for name, durations in grouped.items()
            }
        }

    def end_session(self, session_id: str) -> Dict:
        """세션 종료 및 통계 출력"""
        if session_id not in self.sessions:
            logger.warning(f"⚠️ Session not found: {session_id}")
            return {"error": "Session not found"}

        stats = self.get_stats(session_id)
        summary = ", ".join(
            f"{name}={s['avg']:.0f}ms x{s['count']}" for name, s in stats["events"].items()
        )
        logger.info(
            f"📊 Turn {session_id} finished in {stats['session_duration']:.0f}ms "
            f"({summary or 'no events'})"
        )

        self.sessions.pop(session_id, None)
        self.session_start_times.pop(session_id, None)
        # 실패로 종료되지 않은 타이머 정리
        for key in [k for k in self.timers if k.startswith(f"{session_id}:")]:
            self.timers.pop(key, None)
        return stats


# 전역 인스턴스
perf_logger = PerformanceLogger()
