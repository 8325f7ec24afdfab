"""
读书会 trendingPool 推送任务（每日，建议由 CronJob / Cloud Scheduler 定时触发，进程超时建议 540s）

示例：
  30 1 * * *  cd <project> && python -m bookclub.jobs.refresh_trending_pool
"""

from bookclub.jobs.common import main

if __name__ == "__main__":
    main("pool")
