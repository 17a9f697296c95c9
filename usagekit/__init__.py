"""usagekit: feature usage metering with limits and calendar-aligned resets."""
