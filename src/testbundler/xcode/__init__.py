"""xcodebuild invocation and Xcode project metadata."""
