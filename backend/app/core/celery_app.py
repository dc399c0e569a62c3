# Celery 应用：夜间佣金结算 / no-show 扫描 / fire-and-forget（邮件、自动派车）

from celery import Celery
from celery.schedules import crontab
from kombu import Exchange, Queue
from app.core.config import settings
from app.core.logging import configure_logging

configure_logging()


'''
初始化 Celery 应用/实例
   - Beat: 1 台
   - Worker: 1~2 台，automation 队列并发 1 即可
'''
celery_app = Celery(
    "travelsmart_booking",
    broker=settings.CELERY_BROKER_URL,          # 队列位置 (Redis)
    backend=settings.CELERY_RESULT_BACKEND,     # 结果存储 (Redis)
    include=[
        # include 告诉 Celery 这些模块里定义的任务函数要自动注册
        "app.orchestration.partner_commissions.commission_task",     # 夜间佣金结算
        "app.orchestration.no_show.no_show_task",                    # no-show 扫描
        "app.orchestration.dispatch.auto_dispatch_task",             # 自动派车
        "app.orchestration.notifications.email_task",                # 订单邮件
    ],
)


'''
  通用 Celery 配置
'''
celery_app.conf.update(
    timezone=settings.CELERY_TIMEZONE,           # 时区，默认多米尼加当地时间
    enable_utc=True,                             # 内部还是存 UTC
    task_serializer="json",                      # 序列化格式 JSON
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,                     # 任务启动时标记 started
    broker_connection_retry_on_startup=True,     # 启动时如果 broker 挂了会重试
    # === 容错和超时控制 ===
    worker_prefetch_multiplier=1,    # 一个 worker 一次只取一个任务
    task_acks_late=True,             # 任务执行完再确认，worker crash 后任务会回队列
    broker_heartbeat=30,             # 和 broker 的心跳，防掉线
    broker_pool_limit=10,            # 连接池大小（按并发规模调）
)


'''
不同任务配置不同队列
   - automation: 定时批处理（结算、扫描），串行跑，避免同一批次并发
   - dispatch: 付款后触发的自动派车
   - default: 邮件等轻量 I/O
'''
celery_app.conf.task_queues = (
    Queue("default", Exchange("default"), routing_key="default"),
    Queue("automation", Exchange("automation"), routing_key="automation"),
    Queue("dispatch", Exchange("dispatch"), routing_key="dispatch"),
)
celery_app.conf.task_default_queue = "default"


celery_app.conf.task_routes = {
    "app.orchestration.partner_commissions.commission_task.calculate_partner_commissions": {"queue": "automation"},
    "app.orchestration.no_show.no_show_task.handle_no_shows": {"queue": "automation"},
    "app.orchestration.dispatch.auto_dispatch_task.auto_dispatch_booking": {"queue": "dispatch"},
    "app.orchestration.notifications.email_task.send_booking_email_task": {"queue": "default"},
}


# 静态调度
celery_app.conf.beat_schedule = {

    # 每天一次结算前一天（UTC）完成的行程
    "nightly-partner-commissions": {
        "task": "app.orchestration.partner_commissions.commission_task.calculate_partner_commissions",
        "schedule": crontab(hour=settings.COMMISSION_CRON_HOUR, minute=settings.COMMISSION_CRON_MINUTE),
    },

    # 每 N 秒扫一次 no-show
    "no-show-sweep": {
        "task": "app.orchestration.no_show.no_show_task.handle_no_shows",
        "schedule": settings.NO_SHOW_SWEEP_SECONDS,
    },
}
