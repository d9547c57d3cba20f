"""
定时任务调度器服务
使用 APScheduler 每天为等待库存的作业重新检查可用性
"""

import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from erp.core.config import settings
from erp.db.session import SessionLocal
from erp.api.api_v1.endpoints.inventories.operations.stock_ops import check_pending_availability

logger = logging.getLogger(__name__)

# 全局调度器实例
scheduler: Optional[AsyncIOScheduler] = None


async def check_stock_availability():
    """为已确认 / 部分就绪的作业预留库存"""
    try:
        async with SessionLocal() as db:
            count = await check_pending_availability(db)
        logger.info(f"✅ 库存可用性检查完成，处理作业 {count} 个")
    except Exception as e:
        logger.error(f"❌ 库存可用性检查失败: {str(e)}")


def init_scheduler():
    """初始化并启动调度器"""
    global scheduler

    if not settings.STOCK_SCHEDULER_ENABLED:
        logger.info("📦 库存定时检查已禁用")
        return

    scheduler = AsyncIOScheduler()

    # 默认每天凌晨 2 点执行
    scheduler.add_job(
        check_stock_availability,
        trigger=CronTrigger(
            hour=settings.STOCK_SCHEDULER_HOUR,
            minute=settings.STOCK_SCHEDULER_MINUTE
        ),
        id="check_stock_availability",
        name="库存可用性检查",
        replace_existing=True
    )

    scheduler.start()
    logger.info(
        f"⏰ 定时任务调度器已启动 - 库存检查时间: 每天 "
        f"{settings.STOCK_SCHEDULER_HOUR:02d}:{settings.STOCK_SCHEDULER_MINUTE:02d}"
    )


def shutdown_scheduler():
    """关闭调度器"""
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ 定时任务调度器已关闭")


def get_scheduler_status() -> dict:
    """获取调度器状态"""
    if not scheduler:
        return {
            "enabled": settings.STOCK_SCHEDULER_ENABLED,
            "running": False,
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        })

    return {
        "enabled": settings.STOCK_SCHEDULER_ENABLED,
        "running": scheduler.running,
        "jobs": jobs
    }
