"""
热度聚合任务（每日，建议由 CronJob / Cloud Scheduler 定时触发，进程超时建议 540s）

示例：
  0 1 * * *  cd <project> && python -m bookclub.jobs.aggregate_trending
"""

from bookclub.jobs.common import main

if __name__ == "__main__":
    main("aggregate")
